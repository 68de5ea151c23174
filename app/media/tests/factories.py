"""
Test file builders for media tests.

Images are rendered with Pillow so libmagic sees real magic numbers;
``pad_to`` appends zero bytes after the image data to reach an exact size
without changing the detected type.

Usage:
    from media.tests.factories import make_image_upload

    upload = make_image_upload("PNG", pad_to=5 * 1024 * 1024)
"""

from __future__ import annotations

import io

from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

IMAGE_FORMATS = {
    "JPEG": ("image/jpeg", ".jpg", "RGB"),
    "PNG": ("image/png", ".png", "RGBA"),
    "GIF": ("image/gif", ".gif", "P"),
}


def make_image_bytes(image_format: str = "PNG", pad_to: int | None = None) -> bytes:
    """Render a small image, optionally padded to exactly ``pad_to`` bytes."""
    _, _, mode = IMAGE_FORMATS[image_format]
    image = Image.new(mode, (64, 64), color=1 if mode == "P" else "red")
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    data = buffer.getvalue()
    if pad_to is not None:
        data += b"\x00" * (pad_to - len(data))
    return data


def make_image_upload(
    image_format: str = "PNG",
    name: str | None = None,
    pad_to: int | None = None,
) -> SimpleUploadedFile:
    """Return an image as a SimpleUploadedFile."""
    content_type, extension, _ = IMAGE_FORMATS[image_format]
    return SimpleUploadedFile(
        name=name or f"photo{extension}",
        content=make_image_bytes(image_format, pad_to=pad_to),
        content_type=content_type,
    )


def make_text_upload(name: str = "notes.txt", content: bytes = b"hello\n") -> SimpleUploadedFile:
    return SimpleUploadedFile(name=name, content=content, content_type="text/plain")
