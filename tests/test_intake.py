"""Tests for the intake normalizer."""

import base64

import pytest

from healthform.errors import InvalidInputError
from healthform.intake import (
    ImageRequest,
    TextRequest,
    from_image,
    from_image_file,
    from_text,
    normalize_media_type,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestTextIntake:
    """Text mode."""

    def test_builds_text_request(self):
        req = from_text('{"age":42,"smoker":true,"exercise":"rarely","diet":"high sugar"}')
        assert isinstance(req, TextRequest)
        assert req.kind == "text"
        assert req.content.startswith('{"age":42')

    def test_strips_surrounding_whitespace(self):
        assert from_text("  age: 42\n").content == "age: 42"

    @pytest.mark.parametrize("text", [None, "", "   ", "\n\t "])
    def test_rejects_empty(self, text):
        with pytest.raises(InvalidInputError):
            from_text(text)

    def test_request_is_immutable(self):
        req = from_text("age 42")
        with pytest.raises(Exception):
            req.content = "changed"


class TestImageIntake:
    """Image mode."""

    def test_builds_image_request(self):
        req = from_image(PNG_BYTES, "image/png")
        assert isinstance(req, ImageRequest)
        assert req.kind == "image"
        assert req.media_type == "image/png"

    @pytest.mark.parametrize("data", [None, b""])
    def test_rejects_missing_image(self, data):
        with pytest.raises(InvalidInputError):
            from_image(data, "image/png")

    @pytest.mark.parametrize("media_type", [None, "", "application/pdf", "text/plain", "image/svg+xml"])
    def test_rejects_unsupported_type(self, media_type):
        with pytest.raises(InvalidInputError):
            from_image(PNG_BYTES, media_type)

    def test_rejects_oversized(self):
        with pytest.raises(InvalidInputError) as exc:
            from_image(b"x" * 11, "image/jpeg", max_bytes=10)
        assert "too large" in exc.value.user_message

    def test_accepts_exactly_at_limit(self):
        assert len(from_image(b"x" * 10, "image/jpeg", max_bytes=10).data) == 10

    @pytest.mark.parametrize("raw,expected", [
        ("image/JPEG", "image/jpeg"),
        ("image/jpg", "image/jpeg"),
        ("image/png; charset=binary", "image/png"),
        (" image/webp ", "image/webp"),
    ])
    def test_normalizes_media_type(self, raw, expected):
        assert normalize_media_type(raw) == expected

    def test_data_url(self):
        req = from_image(PNG_BYTES, "image/png")
        prefix = "data:image/png;base64,"
        assert req.data_url().startswith(prefix)
        assert base64.b64decode(req.data_url()[len(prefix):]) == PNG_BYTES


class TestImageFileIntake:
    """Reading an image from disk (CLI path)."""

    def test_guesses_media_type(self, tmp_path):
        p = tmp_path / "form.png"
        p.write_bytes(PNG_BYTES)
        req = from_image_file(p)
        assert req.media_type == "image/png"
        assert req.data == PNG_BYTES

    def test_declared_type_wins(self, tmp_path):
        p = tmp_path / "scan.bin"
        p.write_bytes(PNG_BYTES)
        assert from_image_file(p, media_type="image/png").media_type == "image/png"

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidInputError):
            from_image_file(tmp_path / "nope.png")

    def test_oversized_file(self, tmp_path):
        p = tmp_path / "big.jpg"
        p.write_bytes(b"x" * 100)
        with pytest.raises(InvalidInputError):
            from_image_file(p, max_bytes=50)
