"""
Media file validators.

Provides content-based MIME type detection and validation using python-magic.
The declared content type and extension of an upload are never trusted; the
type is sniffed from the leading bytes of the file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

import magic
from django.conf import settings


# =============================================================================
# Configuration
# =============================================================================

PHOTO_MIME_TYPES: frozenset[str] = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
    }
)

DEFAULT_PHOTO_MAX_BYTES = 5 * 1024 * 1024  # 5MB

# Extension used when naming a stored photo, keyed by detected type
MIME_TO_EXTENSION: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}

# Bytes read for magic number detection
SNIFF_BYTES = 2048


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ValidationResult:
    """Result of file validation.

    Attributes:
        is_valid: Whether the file passed validation.
        mime_type: Detected MIME type of the file.
        size: Size of the file in bytes.
        error: Human-readable error message if validation failed.
        error_code: Machine-readable error code if validation failed.
    """

    is_valid: bool
    mime_type: str | None = None
    size: int | None = None
    error: str | None = None
    error_code: str | None = None

    @property
    def extension(self) -> str:
        """File extension matching the detected type ("" when unknown)."""
        return MIME_TO_EXTENSION.get(self.mime_type or "", "")


# =============================================================================
# Validator Class
# =============================================================================


class PhotoValidator:
    """Validates channel photos using content-based MIME detection.

    Example:
        validator = PhotoValidator()
        result = validator.validate(uploaded_file)
        if not result.is_valid:
            print(f"Validation failed: {result.error}")
    """

    def __init__(
        self,
        allowed_mime_types: frozenset[str] | None = None,
        max_bytes: int | None = None,
    ) -> None:
        """Initialize validator with optional custom configuration.

        Args:
            allowed_mime_types: Accepted MIME types (defaults to JPEG/PNG/GIF).
            max_bytes: Inclusive size limit (defaults to CHAT_PHOTO_MAX_BYTES).
        """
        self._allowed_mime_types = allowed_mime_types or PHOTO_MIME_TYPES
        if max_bytes is None:
            max_bytes = getattr(settings, "CHAT_PHOTO_MAX_BYTES", DEFAULT_PHOTO_MAX_BYTES)
        self._max_bytes = max_bytes
        self._magic = magic.Magic(mime=True)

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def validate(self, file: BinaryIO | None) -> ValidationResult:
        """Validate a photo upload.

        Performs the following checks in order, before anything is written
        to storage:
        1. Presence check
        2. Empty file check
        3. Size limit check (the limit itself is accepted)
        4. MIME type detection and allowlist check

        Args:
            file: File-like object to validate. Must support read() and seek().

        Returns:
            ValidationResult with validation outcome and detected file info.
        """
        if file is None:
            return ValidationResult(
                is_valid=False,
                error="File is required",
                error_code="NO_FILE",
            )

        file_size = self._measure(file)

        if file_size == 0:
            return ValidationResult(
                is_valid=False,
                size=0,
                error="File is empty",
                error_code="EMPTY_FILE",
            )

        if file_size > self._max_bytes:
            limit_mb = self._max_bytes // (1024 * 1024)
            return ValidationResult(
                is_valid=False,
                size=file_size,
                error=f"File size exceeds {limit_mb}MB limit for photos",
                error_code="FILE_TOO_LARGE",
            )

        mime_type = self._detect_mime_type(file)
        if mime_type is None:
            return ValidationResult(
                is_valid=False,
                size=file_size,
                error="Could not detect file type",
                error_code="MIME_TYPE_NOT_ALLOWED",
            )

        if mime_type not in self._allowed_mime_types:
            return ValidationResult(
                is_valid=False,
                mime_type=mime_type,
                size=file_size,
                error=f"File type '{mime_type}' is not allowed",
                error_code="MIME_TYPE_NOT_ALLOWED",
            )

        return ValidationResult(
            is_valid=True,
            mime_type=mime_type,
            size=file_size,
        )

    def _measure(self, file: BinaryIO) -> int:
        """Return the size in bytes, using the upload's own size when known."""
        size = getattr(file, "size", None)
        if size is not None:
            return size
        file.seek(0, 2)
        size = file.tell()
        file.seek(0)
        return size

    def _detect_mime_type(self, file: BinaryIO) -> str | None:
        """Detect MIME type from file content using libmagic."""
        file.seek(0)
        header = file.read(SNIFF_BYTES)
        file.seek(0)

        if not header:
            return None

        try:
            return self._magic.from_buffer(header)
        except magic.MagicException:
            return None


def validate_photo(file: BinaryIO | None) -> ValidationResult:
    """Validate a channel photo using default settings."""
    return PhotoValidator().validate(file)
