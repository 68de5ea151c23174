"""
Celery tasks for media housekeeping.

Usage:
    from media.tasks import purge_stale_staging

    # Typically scheduled via CELERY_BEAT_SCHEDULE
    purge_stale_staging.delay()
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings

from media.storage import get_media_store

logger = logging.getLogger(__name__)

DEFAULT_STAGING_MAX_AGE_SECONDS = 24 * 60 * 60


@shared_task
def purge_stale_staging(max_age_seconds: int | None = None) -> dict:
    """
    Safety net task removing staging files nobody committed.

    Staged artifacts are normally deleted by the request that created
    them; this catches the ones stranded by a worker that died mid-request.

    Args:
        max_age_seconds: Minimum file age to remove. Defaults to
            MEDIA_STAGING_MAX_AGE_SECONDS.

    Returns:
        Dict with count of files removed and any errors.
    """
    if max_age_seconds is None:
        max_age_seconds = getattr(
            settings, "MEDIA_STAGING_MAX_AGE_SECONDS", DEFAULT_STAGING_MAX_AGE_SECONDS
        )

    result = get_media_store().purge_staging(timedelta(seconds=max_age_seconds))

    logger.info(
        f"Staging purge complete: removed {result['removed_count']} file(s), "
        f"{len(result['errors'])} error(s)"
    )
    for error in result["errors"]:
        logger.warning(error)

    return result
