"""
Tests for MediaStore.

Covers:
- initialize(): directory creation and configuration errors
- save() naming for prefixed (photo) and plain (staged) artifacts
- stage(): uncommitted artifacts are removed, committed ones kept
- relocate(), delete(), discard(), url()
- purge_staging()
"""

from __future__ import annotations

import os
import re
import time
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core.exceptions import ImproperlyConfigured

from core.exceptions import NotFoundError
from media.storage import Artifact, MediaStore, get_media_store, set_media_store
from media.tests.factories import make_text_upload


class TestInitialize:
    def test_creates_upload_directories(self, tmp_path):
        root = tmp_path / "uploads"

        store = MediaStore.initialize(root=str(root), base_url="/media/")

        assert (root / "channels").is_dir()
        assert (root / "files").is_dir()
        assert (root / "staging").is_dir()
        assert store.is_ready() is True

    def test_is_idempotent(self, tmp_path):
        MediaStore.initialize(root=str(tmp_path), base_url="/media/")
        store = MediaStore.initialize(root=str(tmp_path), base_url="/media/")

        assert store.is_ready() is True

    def test_raises_when_root_is_a_file(self, tmp_path):
        """
        Given a MEDIA_ROOT that points at a regular file
        When the store is initialized
        Then startup fails with ImproperlyConfigured
        """
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")

        with pytest.raises(ImproperlyConfigured):
            MediaStore.initialize(root=str(blocker), base_url="/media/")

    def test_raises_without_root(self):
        with pytest.raises(ImproperlyConfigured):
            MediaStore.initialize(root="", base_url="/media/")

    def test_not_ready_after_directory_removed(self, store):
        os.rmdir(os.path.join(store.root, "files"))

        assert store.is_ready() is False


class TestProcessWideHandle:
    def test_get_media_store_returns_installed_store(self, store):
        previous = get_media_store()
        set_media_store(store)
        try:
            assert get_media_store() is store
        finally:
            set_media_store(previous)

    def test_get_media_store_raises_when_uninstalled(self):
        previous = get_media_store()
        set_media_store(None)
        try:
            with pytest.raises(ImproperlyConfigured):
                get_media_store()
        finally:
            set_media_store(previous)


class TestSave:
    def test_prefixed_name(self, store, sample_png_uploaded):
        artifact = store.save(sample_png_uploaded, MediaStore.CHANNELS_DIR, prefix="channel", extension=".png")

        assert re.fullmatch(r"channels/channel-\d{13}-\d+\.png", artifact.path)
        assert os.path.isfile(store.path(artifact.path))
        assert artifact.size == sample_png_uploaded.size
        assert artifact.content_type == "image/png"
        assert artifact.committed is False

    def test_prefixed_name_uses_upload_extension_by_default(self, store, sample_gif_uploaded):
        artifact = store.save(sample_gif_uploaded, MediaStore.CHANNELS_DIR, prefix="channel")

        assert artifact.path.endswith(".gif")

    def test_plain_name_keeps_basename(self, store):
        artifact = store.save(make_text_upload("report.txt"), MediaStore.STAGING_DIR)

        assert artifact.path.startswith("staging/")
        assert artifact.path.endswith("-report.txt")

    def test_two_saves_never_collide(self, store, sample_png_uploaded):
        first = store.save(sample_png_uploaded, MediaStore.CHANNELS_DIR, prefix="channel")
        second = store.save(sample_png_uploaded, MediaStore.CHANNELS_DIR, prefix="channel")

        assert first.path != second.path


class TestStage:
    def test_uncommitted_artifact_is_removed(self, store):
        with store.stage(make_text_upload()) as artifact:
            assert store.exists(artifact.path)

        assert not store.exists(artifact.path)

    def test_committed_artifact_is_kept(self, store):
        with store.stage(make_text_upload()) as artifact:
            artifact.commit()

        assert store.exists(artifact.path)

    def test_artifact_removed_when_block_raises(self, store):
        with pytest.raises(RuntimeError):
            with store.stage(make_text_upload()) as artifact:
                raise RuntimeError("boom")

        assert not store.exists(artifact.path)

    def test_early_return_removes_artifact(self, store):
        def handler():
            with store.stage(make_text_upload()) as artifact:
                return artifact

        artifact = handler()

        assert not store.exists(artifact.path)

    def test_cleanup_failure_is_swallowed(self, store):
        """
        Given the filesystem refuses the cleanup delete
        When the staged block ends without commit
        Then no error escapes the context manager
        """
        with patch.object(store, "delete", side_effect=PermissionError("read-only")):
            with store.stage(make_text_upload()) as artifact:
                pass

        assert store.exists(artifact.path)


class TestRelocate:
    def test_moves_file(self, store):
        artifact = store.save(make_text_upload("a.txt", b"abc"), MediaStore.STAGING_DIR)
        old_path = artifact.path

        moved = store.relocate(artifact, "files/1700000000000/a.txt")

        assert moved is artifact
        assert artifact.path == "files/1700000000000/a.txt"
        assert not store.exists(old_path)
        with open(store.path(artifact.path), "rb") as f:
            assert f.read() == b"abc"

    def test_never_overwrites_existing_destination(self, store):
        first = store.relocate(store.save(make_text_upload("a.txt", b"one"), MediaStore.STAGING_DIR), "files/1/a.txt")
        second = store.relocate(store.save(make_text_upload("a.txt", b"two"), MediaStore.STAGING_DIR), "files/1/a.txt")

        assert first.path != second.path
        with open(store.path(first.path), "rb") as f:
            assert f.read() == b"one"

    def test_missing_source_raises(self, store):
        with pytest.raises(NotFoundError):
            store.relocate(Artifact(path="staging/ghost.txt", size=0), "files/1/ghost.txt")


class TestDelete:
    def test_delete_removes_file(self, store):
        artifact = store.save(make_text_upload(), MediaStore.FILES_DIR)

        store.delete(artifact.path)

        assert not store.exists(artifact.path)

    def test_delete_missing_raises(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.delete("channels/ghost.png")

        assert exc_info.value.error_code == "ARTIFACT_NOT_FOUND"

    def test_discard_missing_returns_false(self, store):
        assert store.discard("channels/ghost.png") is False
        assert store.discard("") is False

    def test_discard_existing_returns_true(self, store):
        artifact = store.save(make_text_upload(), MediaStore.FILES_DIR)

        assert store.discard(artifact.path) is True


class TestUrl:
    def test_joins_host_media_url_and_path(self, store):
        assert store.url("channels/x.png") == "http://testserver/media/channels/x.png"

    def test_empty_path(self, store):
        assert store.url("") is None
        assert store.url(None) is None


class TestPurgeStaging:
    def test_removes_only_old_files(self, store):
        old = store.save(make_text_upload("old.txt"), MediaStore.STAGING_DIR)
        fresh = store.save(make_text_upload("fresh.txt"), MediaStore.STAGING_DIR)
        two_hours_ago = time.time() - 7200
        os.utime(store.path(old.path), (two_hours_ago, two_hours_ago))

        result = store.purge_staging(timedelta(hours=1))

        assert result == {"removed_count": 1, "errors": []}
        assert not store.exists(old.path)
        assert store.exists(fresh.path)

    def test_leaves_other_directories_alone(self, store):
        kept = store.save(make_text_upload(), MediaStore.FILES_DIR)
        an_hour_ago = time.time() - 3600
        os.utime(store.path(kept.path), (an_hour_ago, an_hour_ago))

        store.purge_staging(timedelta(seconds=1))

        assert store.exists(kept.path)
