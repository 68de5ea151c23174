"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Channel, ChannelMembership, Message model tests
- test_services.py: ChannelService and MessageService tests
- test_optimistic_locking.py: Admin transfer races
- test_views.py: REST API endpoint tests
- test_realtime.py: Post-commit event publishing
- test_consumers.py / test_middleware.py: WebSocket feed

Usage:
    pytest app/chat/tests/
    pytest app/chat/tests/test_consumers.py
"""
