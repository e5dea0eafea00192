import base64
import mimetypes
import pathlib
from dataclasses import dataclass
from typing import Optional, Union

from .config import DEFAULT_MAX_IMAGE_BYTES
from .errors import InvalidInputError


ALLOWED_IMAGE_TYPES = ("image/png", "image/jpeg", "image/webp", "image/gif")

_MEDIA_TYPE_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
}


@dataclass(frozen=True)
class TextRequest:
    content: str

    @property
    def kind(self) -> str:
        return "text"


@dataclass(frozen=True)
class ImageRequest:
    data: bytes
    media_type: str

    @property
    def kind(self) -> str:
        return "image"

    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


AnalysisRequest = Union[TextRequest, ImageRequest]


def normalize_media_type(media_type: Optional[str]) -> str:
    # "image/JPEG; charset=binary" -> "image/jpeg"
    mt = (media_type or "").split(";", 1)[0].strip().lower()
    return _MEDIA_TYPE_ALIASES.get(mt, mt)


def from_text(text: Optional[str]) -> TextRequest:
    if text is None or not text.strip():
        raise InvalidInputError("Please enter the survey answers; the text is empty.")
    return TextRequest(content=text.strip())


def from_image(
    data: Optional[bytes],
    media_type: Optional[str],
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> ImageRequest:
    if not data:
        raise InvalidInputError("Please select an image of the survey form; no image was provided.")

    mt = normalize_media_type(media_type)
    if mt not in ALLOWED_IMAGE_TYPES:
        raise InvalidInputError(
            f"Unsupported image type {media_type!r} (allowed: {', '.join(ALLOWED_IMAGE_TYPES)})."
        )
    if len(data) > max_bytes:
        raise InvalidInputError(
            f"The image is too large ({len(data)} bytes); the limit is {max_bytes} bytes."
        )
    return ImageRequest(data=bytes(data), media_type=mt)


def from_image_file(
    path: Union[str, pathlib.Path],
    media_type: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> ImageRequest:
    p = pathlib.Path(path)
    if not p.is_file():
        raise InvalidInputError(f"Image file not found: {p}")
    if p.stat().st_size > max_bytes:
        raise InvalidInputError(
            f"The image is too large ({p.stat().st_size} bytes); the limit is {max_bytes} bytes."
        )
    if media_type is None:
        media_type, _ = mimetypes.guess_type(p.name)
    try:
        data = p.read_bytes()
    except OSError as exc:
        raise InvalidInputError(f"Could not read image file {p}: {exc}")
    return from_image(data, media_type, max_bytes=max_bytes)
