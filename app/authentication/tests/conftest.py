"""
Test configuration and fixtures for authentication tests.
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.models import User
from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a basic active user."""
    return UserFactory()


@pytest.fixture
def staff_user(db):
    """Create a staff user (elevated actor)."""
    return UserFactory(is_staff=True)


@pytest.fixture
def inactive_user(db):
    """Create a deactivated user."""
    return UserFactory(is_active=False)


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com",
        password="AdminPass123!",
    )


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client carrying a JWT access token for ``user``."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client
