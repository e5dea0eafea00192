import os
from dataclasses import dataclass


DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    openai_api_key: str
    openai_base_url: str
    openai_model: str
    request_timeout_seconds: int
    max_retries: int
    max_image_bytes: int

    @staticmethod
    def from_env() -> "Settings":
        openai_key = os.environ.get("OPENAI_API_KEY", "").strip()
        base_url = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1").strip()
        model = os.environ.get("OPENAI_MODEL", "gpt-4.1-mini").strip()
        request_timeout_seconds = _int_env("REQUEST_TIMEOUT_SECONDS", 60)
        max_retries = _int_env("MAX_RETRIES", 3)
        max_image_bytes = _int_env("MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES)

        if not openai_key:
            raise RuntimeError("Missing OPENAI_API_KEY")
        if max_retries < 1:
            raise RuntimeError("MAX_RETRIES must be at least 1")

        return Settings(
            openai_api_key=openai_key,
            openai_base_url=base_url,
            openai_model=model,
            request_timeout_seconds=request_timeout_seconds,
            max_retries=max_retries,
            max_image_bytes=max_image_bytes,
        )
