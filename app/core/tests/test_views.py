"""
Tests for the health check endpoint.
"""

from __future__ import annotations

import shutil
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from media.storage import MediaStore


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "media": "ready",
        }

    def test_missing_media_directory_is_unhealthy(self, client, media_store):
        """
        Why it matters: A lost upload volume must take the instance out of rotation.
        """
        shutil.rmtree(media_store.path(MediaStore.FILES_DIR))

        response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["media"] == "unavailable"
        assert response.json()["status"] == "unhealthy"

    def test_database_down_is_unhealthy(self, client):
        with patch("core.views.connection") as connection:
            connection.cursor.side_effect = DatabaseError("connection refused")
            response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"
