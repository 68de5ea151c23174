"""
Test fixtures for media app.

Provides fixtures for:
- A MediaStore rooted in a per-test temporary directory
- Sample files (JPEG, PNG, GIF, text)
- Invalid files (executable with fake extension, empty, oversized)
"""

from __future__ import annotations

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from media.storage import MediaStore
from media.tests.factories import make_image_upload, make_text_upload

PHOTO_LIMIT = 5 * 1024 * 1024


@pytest.fixture
def store(tmp_path) -> MediaStore:
    """Initialized store under tmp_path."""
    return MediaStore.initialize(
        root=str(tmp_path / "media"),
        base_url="/media/",
        public_host="http://testserver",
    )


@pytest.fixture
def sample_jpeg_uploaded() -> SimpleUploadedFile:
    return make_image_upload("JPEG", name="test_image.jpg")


@pytest.fixture
def sample_png_uploaded() -> SimpleUploadedFile:
    return make_image_upload("PNG", name="test_image.png")


@pytest.fixture
def sample_gif_uploaded() -> SimpleUploadedFile:
    return make_image_upload("GIF", name="test_image.gif")


@pytest.fixture
def sample_txt_uploaded() -> SimpleUploadedFile:
    return make_text_upload("test_document.txt", b"This is a test text file.\nWith multiple lines.\n")


@pytest.fixture
def empty_file_uploaded() -> SimpleUploadedFile:
    return SimpleUploadedFile(name="empty.png", content=b"", content_type="image/png")


@pytest.fixture
def executable_file_uploaded() -> SimpleUploadedFile:
    """ELF executable disguised with a .jpg name and content type."""
    elf_header = b"\x7fELF" + b"\x01\x01\x01\x00" + b"\x00" * 100
    return SimpleUploadedFile(
        name="totally_not_malware.jpg",
        content=elf_header,
        content_type="image/jpeg",
    )


@pytest.fixture
def photo_at_limit() -> SimpleUploadedFile:
    """PNG padded to exactly the photo size limit."""
    return make_image_upload("PNG", name="limit.png", pad_to=PHOTO_LIMIT)


@pytest.fixture
def photo_over_limit() -> SimpleUploadedFile:
    """PNG padded to one byte over the photo size limit."""
    return make_image_upload("PNG", name="over.png", pad_to=PHOTO_LIMIT + 1)
