"""
Tests for the photo validator.

These tests verify:
- Content-based MIME type detection using python-magic
- The JPEG/PNG/GIF allowlist
- The inclusive size limit
- Missing and empty file rejection
"""

from __future__ import annotations

from media.validators import (
    DEFAULT_PHOTO_MAX_BYTES,
    PhotoValidator,
    ValidationResult,
    validate_photo,
)


class TestMimeTypeDetection:
    """Tests for content-based MIME type detection."""

    def test_accepts_jpeg(self, sample_jpeg_uploaded):
        result = PhotoValidator().validate(sample_jpeg_uploaded)

        assert result.is_valid is True
        assert result.mime_type == "image/jpeg"
        assert result.extension == ".jpg"

    def test_accepts_png(self, sample_png_uploaded):
        result = PhotoValidator().validate(sample_png_uploaded)

        assert result.is_valid is True
        assert result.mime_type == "image/png"
        assert result.extension == ".png"

    def test_accepts_gif(self, sample_gif_uploaded):
        result = PhotoValidator().validate(sample_gif_uploaded)

        assert result.is_valid is True
        assert result.mime_type == "image/gif"

    def test_rejects_text_file(self, sample_txt_uploaded):
        """
        Plain text is not a photo.
        """
        result = PhotoValidator().validate(sample_txt_uploaded)

        assert result.is_valid is False
        assert result.error_code == "MIME_TYPE_NOT_ALLOWED"
        assert "text/plain" in result.error

    def test_ignores_declared_type_and_extension(self, executable_file_uploaded):
        """
        An executable named .jpg with content_type image/jpeg is rejected.

        Why it matters: clients control the name and declared type, not the bytes.
        """
        result = PhotoValidator().validate(executable_file_uploaded)

        assert result.is_valid is False
        assert result.error_code == "MIME_TYPE_NOT_ALLOWED"

    def test_leaves_file_position_at_start(self, sample_png_uploaded):
        PhotoValidator().validate(sample_png_uploaded)

        assert sample_png_uploaded.tell() == 0


class TestSizeLimit:
    """Tests for the inclusive size limit."""

    def test_default_limit_is_five_megabytes(self):
        assert PhotoValidator().max_bytes == DEFAULT_PHOTO_MAX_BYTES == 5 * 1024 * 1024

    def test_accepts_file_exactly_at_limit(self, photo_at_limit):
        result = PhotoValidator().validate(photo_at_limit)

        assert result.is_valid is True
        assert result.size == 5 * 1024 * 1024

    def test_rejects_file_one_byte_over_limit(self, photo_over_limit):
        result = PhotoValidator().validate(photo_over_limit)

        assert result.is_valid is False
        assert result.error_code == "FILE_TOO_LARGE"
        assert result.size == 5 * 1024 * 1024 + 1

    def test_custom_limit(self, sample_png_uploaded):
        result = PhotoValidator(max_bytes=10).validate(sample_png_uploaded)

        assert result.is_valid is False
        assert result.error_code == "FILE_TOO_LARGE"

    def test_limit_follows_settings(self, settings):
        settings.CHAT_PHOTO_MAX_BYTES = 1024

        assert PhotoValidator().max_bytes == 1024


class TestMissingOrEmpty:
    def test_none_is_no_file(self):
        result = validate_photo(None)

        assert result == ValidationResult(
            is_valid=False,
            error="File is required",
            error_code="NO_FILE",
        )

    def test_empty_file(self, empty_file_uploaded):
        result = validate_photo(empty_file_uploaded)

        assert result.is_valid is False
        assert result.error_code == "EMPTY_FILE"
