"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures for the roles a channel knows (admin, member, outsider)
  plus a staff user for moderation
- A channel fixture with one admin and one member
- Message fixtures (channel and direct)
- API client helpers for authenticated requests

Usage:
    def test_example(channel, admin_client):
        response = admin_client.get(f"/api/v1/chat/channels/{channel.id}/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from chat.tests.factories import ChannelFactory, DirectMessageFactory, MessageFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def admin_user(db):
    """User who administers the test channel."""
    return UserFactory()


@pytest.fixture
def member_user(db):
    """User holding a membership of the test channel."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    """User unrelated to the test channel."""
    return UserFactory()


@pytest.fixture
def staff_user(db):
    """Elevated user allowed to pin and to edit others' messages."""
    return UserFactory(is_staff=True)


# =============================================================================
# Channel and Message Fixtures
# =============================================================================


@pytest.fixture
def channel(admin_user, member_user):
    """Channel administered by admin_user with member_user as member."""
    return ChannelFactory(name="Team", admin=admin_user, members=[member_user])


@pytest.fixture
def channel_message(channel, member_user):
    return MessageFactory(channel=channel, sender=member_user, content="hello team")


@pytest.fixture
def direct_message(admin_user, member_user):
    return DirectMessageFactory(sender=admin_user, recipient=member_user, content="hi")


# =============================================================================
# API Client Fixtures
# =============================================================================


def _client_for(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def member_client(member_user):
    return _client_for(member_user)


@pytest.fixture
def other_client(other_user):
    return _client_for(other_user)


@pytest.fixture
def staff_client(staff_user):
    return _client_for(staff_user)
