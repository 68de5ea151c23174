"""
Tests for media Celery tasks.

Tasks are called synchronously; Celery runs eagerly in tests.
"""

from __future__ import annotations

import os
import time

import pytest

from media.storage import MediaStore, get_media_store, set_media_store
from media.tasks import purge_stale_staging
from media.tests.factories import make_text_upload


@pytest.fixture
def installed_store(store):
    previous = get_media_store()
    set_media_store(store)
    yield store
    set_media_store(previous)


def _age(store, artifact, seconds):
    past = time.time() - seconds
    os.utime(store.path(artifact.path), (past, past))


class TestPurgeStaleStaging:
    def test_removes_files_older_than_argument(self, installed_store):
        stale = installed_store.save(make_text_upload(), MediaStore.STAGING_DIR)
        _age(installed_store, stale, 600)

        result = purge_stale_staging(max_age_seconds=300)

        assert result["removed_count"] == 1
        assert not installed_store.exists(stale.path)

    def test_defaults_to_setting(self, installed_store, settings):
        settings.MEDIA_STAGING_MAX_AGE_SECONDS = 60
        stale = installed_store.save(make_text_upload(), MediaStore.STAGING_DIR)
        recent = installed_store.save(make_text_upload(), MediaStore.STAGING_DIR)
        _age(installed_store, stale, 120)

        result = purge_stale_staging()

        assert result["removed_count"] == 1
        assert installed_store.exists(recent.path)

    def test_runs_through_celery_api(self, installed_store):
        """The task is registered and callable via apply()."""
        result = purge_stale_staging.apply(kwargs={"max_age_seconds": 3600}).get()

        assert result == {"removed_count": 0, "errors": []}
