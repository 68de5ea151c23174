"""
Chat application configuration.

This app provides:
- Channels with a single admin and a set of members
- Direct and channel messages with edit, soft delete and pin
- Realtime notifications over Django Channels
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
