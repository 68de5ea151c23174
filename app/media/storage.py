"""
Media Store: filesystem placement of uploaded artifacts.

Every artifact is addressed by a path relative to the store root
(MEDIA_ROOT), e.g. ``channels/channel-1700000000000-123456789.png`` or
``files/1700000000000/report.pdf``. Those relative paths are what the
chat models persist; ``url()`` turns one into a public URL.

Lifecycle discipline for uploads:
    save new artifact -> commit the database record -> delete the old one

``stage()`` enforces the first half: an artifact that is not explicitly
committed by the end of the block is deleted again, whether the block
returned early or raised.

Usage:
    from media.storage import get_media_store

    store = get_media_store()
    with store.stage(upload, MediaStore.CHANNELS_DIR, prefix="channel") as artifact:
        channel.photo = artifact.path
        channel.save()
        artifact.commit()

Related files:
    - apps.py: MediaConfig.ready() initializes the store once at startup
    - tasks.py: purge_stale_staging removes stranded staging files
"""

from __future__ import annotations

import logging
import os
import secrets
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.files.storage import FileSystemStorage
from django.utils import timezone

from core.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Generator

    from django.core.files.uploadedfile import UploadedFile

logger = logging.getLogger(__name__)


def epoch_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class Artifact:
    """A stored file, addressed by its path relative to the store root."""

    path: str
    size: int
    content_type: str = ""
    committed: bool = False

    def commit(self) -> None:
        """Mark the artifact as owned by a persisted record."""
        self.committed = True


class MediaStore:
    """
    Handle on the media root directory.

    Build one with ``MediaStore.initialize()``; the constructor alone does
    not touch the filesystem.
    """

    CHANNELS_DIR = "channels"
    FILES_DIR = "files"
    STAGING_DIR = "staging"

    SUBDIRECTORIES = (CHANNELS_DIR, FILES_DIR, STAGING_DIR)

    def __init__(self, root: str, base_url: str, public_host: str = "") -> None:
        self.root = os.fspath(root)
        self.base_url = base_url
        self.public_host = public_host.rstrip("/")
        self.storage = FileSystemStorage(location=self.root, base_url=base_url)

    @classmethod
    def initialize(
        cls,
        root: str | None = None,
        base_url: str | None = None,
        public_host: str | None = None,
    ) -> MediaStore:
        """
        Create the upload directories and return a ready store.

        Defaults come from MEDIA_ROOT, MEDIA_URL and MEDIA_PUBLIC_HOST.

        Raises:
            ImproperlyConfigured: If the directories cannot be created.
        """
        root = root if root is not None else settings.MEDIA_ROOT
        base_url = base_url if base_url is not None else settings.MEDIA_URL
        if public_host is None:
            public_host = getattr(settings, "MEDIA_PUBLIC_HOST", "")

        if not root:
            raise ImproperlyConfigured("MEDIA_ROOT must be set to use the media store.")

        store = cls(root, base_url, public_host)
        try:
            for subdirectory in cls.SUBDIRECTORIES:
                os.makedirs(os.path.join(store.root, subdirectory), exist_ok=True)
        except OSError as e:
            raise ImproperlyConfigured(
                f"Could not create media directories under {store.root}: {e}"
            ) from e

        logger.info(f"Media store ready at {store.root}")
        return store

    def is_ready(self) -> bool:
        """Whether every upload directory still exists."""
        return all(
            os.path.isdir(os.path.join(self.root, subdirectory))
            for subdirectory in self.SUBDIRECTORIES
        )

    # -------------------------------------------------------------------------
    # Paths and URLs
    # -------------------------------------------------------------------------

    def path(self, relative_path: str) -> str:
        """Absolute filesystem path for a relative artifact path."""
        return self.storage.path(relative_path)

    def exists(self, relative_path: str) -> bool:
        return bool(relative_path) and self.storage.exists(relative_path)

    def safe_basename(self, name: str | None) -> str:
        """Final path component of a client-supplied name, made storage safe."""
        return self.storage.get_valid_name(os.path.basename(name or "") or "upload")

    def url(self, relative_path: str | None) -> str | None:
        """
        Public URL of an artifact: MEDIA_PUBLIC_HOST + MEDIA_URL + path.

        Returns None for an empty path.
        """
        if not relative_path:
            return None
        return f"{self.public_host}{self.storage.url(relative_path)}"

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def save(
        self,
        upload: UploadedFile,
        directory: str,
        prefix: str | None = None,
        extension: str | None = None,
    ) -> Artifact:
        """
        Write an upload under ``directory``.

        With a prefix the stored name is ``<prefix>-<epoch-ms>-<random><ext>``;
        without one it is ``<uuid>-<basename>``.
        """
        basename = self.safe_basename(upload.name)
        if prefix:
            if extension is None:
                extension = os.path.splitext(basename)[1].lower()
            name = f"{prefix}-{epoch_millis()}-{secrets.randbelow(10**9)}{extension}"
        else:
            name = f"{uuid.uuid4().hex}-{basename}"

        upload.seek(0)
        stored_name = self.storage.save(f"{directory}/{name}", upload)
        artifact = Artifact(
            path=stored_name,
            size=self.storage.size(stored_name),
            content_type=getattr(upload, "content_type", "") or "",
        )
        logger.debug(f"Saved artifact {artifact.path} ({artifact.size} bytes)")
        return artifact

    @contextmanager
    def stage(
        self,
        upload: UploadedFile,
        directory: str = STAGING_DIR,
        prefix: str | None = None,
        extension: str | None = None,
    ) -> Generator[Artifact, None, None]:
        """
        Save an upload for the duration of a block.

        The artifact is deleted when the block raises or finishes without
        calling ``artifact.commit()``. Cleanup failures are logged, never
        raised.
        """
        artifact = self.save(upload, directory, prefix=prefix, extension=extension)
        try:
            yield artifact
        except BaseException:
            self.discard(artifact.path)
            raise
        if not artifact.committed:
            self.discard(artifact.path)

    def relocate(self, artifact: Artifact, relative_path: str) -> Artifact:
        """
        Move an artifact to ``relative_path`` and update it in place.

        An existing file at the destination is never overwritten; the
        storage picks the next free name instead.

        Raises:
            NotFoundError: If the artifact is no longer on disk.
        """
        if not self.exists(artifact.path):
            raise NotFoundError(
                "Artifact not found",
                error_code="ARTIFACT_NOT_FOUND",
                details={"path": artifact.path},
            )

        destination = self.storage.get_available_name(relative_path)
        os.makedirs(os.path.dirname(self.path(destination)), exist_ok=True)
        os.replace(self.path(artifact.path), self.path(destination))

        logger.debug(f"Relocated artifact {artifact.path} -> {destination}")
        artifact.path = destination
        return artifact

    # -------------------------------------------------------------------------
    # Deleting
    # -------------------------------------------------------------------------

    def delete(self, relative_path: str) -> None:
        """
        Delete an artifact.

        Raises:
            NotFoundError: If there is no file at that path.
            OSError: If the file could not be removed.
        """
        if not self.exists(relative_path):
            raise NotFoundError(
                "Artifact not found",
                error_code="ARTIFACT_NOT_FOUND",
                details={"path": relative_path},
            )
        os.remove(self.path(relative_path))

    def discard(self, relative_path: str | None) -> bool:
        """
        Best-effort delete: failures are logged and swallowed.

        Returns:
            True if a file was removed.
        """
        if not relative_path:
            return False
        try:
            self.delete(relative_path)
        except NotFoundError:
            logger.warning(f"Artifact already gone: {relative_path}")
            return False
        except OSError as e:
            logger.warning(f"Failed to delete artifact {relative_path}: {e}")
            return False
        return True

    def purge_staging(self, max_age: timedelta) -> dict:
        """
        Remove staging files older than ``max_age``.

        Returns:
            Dict with removed_count and the list of errors.
        """
        staging_root = os.path.join(self.root, self.STAGING_DIR)
        if not os.path.isdir(staging_root):
            return {"removed_count": 0, "errors": []}

        threshold = (timezone.now() - max_age).timestamp()
        removed_count = 0
        errors = []

        for entry in os.scandir(staging_root):
            if not entry.is_file():
                continue
            if entry.stat().st_mtime > threshold:
                continue
            try:
                os.remove(entry.path)
                removed_count += 1
            except OSError as e:
                errors.append(f"Failed to remove {entry.name}: {e}")

        return {"removed_count": removed_count, "errors": errors}


# =============================================================================
# Process-wide handle
# =============================================================================

_store: MediaStore | None = None


def set_media_store(store: MediaStore | None) -> None:
    """Install the process-wide store (called from MediaConfig.ready())."""
    global _store
    _store = store


def get_media_store() -> MediaStore:
    """
    Return the store initialized at startup.

    Raises:
        ImproperlyConfigured: If the media app has not initialized it.
    """
    if _store is None:
        raise ImproperlyConfigured("Media store is not initialized.")
    return _store
