import json
import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional, Union

import requests

from .errors import UpstreamUnavailableError
from .intake import AnalysisRequest, ImageRequest

logger = logging.getLogger(__name__)

UserContent = Union[str, List[Dict[str, Any]]]


class OpenAIAPIError(UpstreamUnavailableError):
    def __init__(self, status_code: int, err_type: str, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.err_type = err_type
        self.message = message
        self.raw = raw
        # insufficient_quota is terminal
        self.retryable = err_type != "insufficient_quota"


def _safe_parse_openai_error(resp: requests.Response) -> OpenAIAPIError:
    """
    Read an OpenAI-compatible error body as safely as possible.
    Anything unexpected is still folded into an OpenAIAPIError.
    """
    status = resp.status_code
    raw = resp.text
    try:
        j = resp.json()
    except ValueError:
        return OpenAIAPIError(status, "api_error", raw or f"HTTP {status}", raw=raw)
    # {"error": {"type": "...", "message": "..."}}
    if isinstance(j, dict) and isinstance(j.get("error"), dict):
        et = str(j["error"].get("type") or j["error"].get("code") or "api_error")
        msg = str(j["error"].get("message") or raw)
        return OpenAIAPIError(status, et, msg, raw=raw)
    # {"message": "..."}
    if isinstance(j, dict) and "message" in j:
        return OpenAIAPIError(status, "api_error", str(j.get("message")), raw=raw)
    return OpenAIAPIError(status, "api_error", raw or f"HTTP {status}", raw=raw)


def _unwrap_openai_content(data: Any) -> str:
    """
    Strip the chat.completions envelope (id/choices/created...) and return
    choices[0].message.content as text. The content is NOT parsed here; it
    is untrusted until the validator has seen it.
    """
    if isinstance(data, dict) and isinstance(data.get("choices"), list) and data["choices"]:
        c0 = data["choices"][0] or {}
        msg = c0.get("message") or {}
        content = msg.get("content")
        if content is None:
            # legacy completions shape
            content = c0.get("text")
        if isinstance(content, str):
            return content
        # some compatible servers hand back the JSON object itself
        if isinstance(content, (dict, list)):
            return json.dumps(content, ensure_ascii=False)
        if content is not None:
            return str(content)
        return ""
    return json.dumps(data, ensure_ascii=False)


def build_user_content(request: AnalysisRequest, instruction: str) -> UserContent:
    if isinstance(request, ImageRequest):
        return [
            {"type": "image_url", "image_url": {"url": request.data_url()}},
            {"type": "text", "text": instruction},
        ]
    return f"Input Text:\n{request.content}\n\n{instruction}"


class LLMClient:
    def __init__(self, api_key: str, base_url: str, model: str, timeout_seconds: int = 60, max_retries: int = 3):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries

    def _call_with_retry_429(self, fn: Callable[[], str], max_sleep: float = 30.0, base_sleep: float = 1.0) -> str:
        last_exc = None

        for i in range(self.max_retries):
            try:
                return fn()
            except OpenAIAPIError as api_err:
                last_exc = api_err
                # only 429 (rate_limit) is retried, exponential backoff + jitter
                if api_err.status_code != 429 or not api_err.retryable:
                    raise
                if i == self.max_retries - 1:
                    break
                sleep = min(max_sleep, base_sleep * (2 ** i))
                sleep = sleep + random.uniform(0, 0.3 * sleep)
                logger.warning("rate limited (attempt %d/%d); sleeping %.1fs", i + 1, self.max_retries, sleep)
                time.sleep(sleep)

        if last_exc is not None:
            raise last_exc
        raise UpstreamUnavailableError("rate limit: exceeded retries")

    def json_call(self, system: str, user: UserContent) -> str:
        def _do() -> str:
            try:
                r = requests.post(
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": system},
                            {"role": "user", "content": user},
                        ],
                        "response_format": {"type": "json_object"},
                    },
                    timeout=self.timeout_seconds,
                )
            except requests.Timeout as exc:
                raise UpstreamUnavailableError(f"analysis service timed out after {self.timeout_seconds}s") from exc
            except requests.RequestException as exc:
                raise UpstreamUnavailableError(f"analysis service unreachable: {exc}") from exc

            try:
                r.raise_for_status()
            except requests.HTTPError:
                raise _safe_parse_openai_error(r)

            try:
                data = r.json()
            except (ValueError, RecursionError):
                # not even an envelope; hand the body on so it is reported as malformed
                return r.text

            return _unwrap_openai_content(data)

        return self._call_with_retry_429(_do)
