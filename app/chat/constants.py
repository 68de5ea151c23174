"""
Constants and configuration for the chat module.

This module centralizes:
- Error codes returned by ChannelService / MessageService
- Channel and message limits
- Realtime group naming and event types

Import example:
    from chat.constants import ErrorCode, CHANNEL_CONFIG
"""

from typing import Final

from rest_framework import status


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode:
    """Stable, machine-readable failure codes."""

    INVALID_ACTOR: Final[str] = "INVALID_ACTOR"
    INVALID_MEMBERS: Final[str] = "INVALID_MEMBERS"
    USER_NOT_FOUND: Final[str] = "USER_NOT_FOUND"
    NOT_FOUND: Final[str] = "NOT_FOUND"
    FORBIDDEN: Final[str] = "FORBIDDEN"
    ALREADY_MEMBER: Final[str] = "ALREADY_MEMBER"
    NOT_A_MEMBER: Final[str] = "NOT_A_MEMBER"
    ALREADY_PINNED: Final[str] = "ALREADY_PINNED"
    INVALID_MEDIA: Final[str] = "INVALID_MEDIA"
    NO_FILE: Final[str] = "NO_FILE"
    CONFLICT: Final[str] = "CONFLICT"
    UNEXPECTED: Final[str] = "UNEXPECTED"
    INVALID_REQUEST: Final[str] = "INVALID_REQUEST"


# HTTP status for each error code; unknown codes map to 400
ERROR_STATUS: Final[dict[str, int]] = {
    ErrorCode.INVALID_ACTOR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_MEMBERS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.ALREADY_MEMBER: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_A_MEMBER: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ALREADY_PINNED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_MEDIA: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NO_FILE: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
}


# =============================================================================
# Channel Configuration
# =============================================================================


class CHANNEL_CONFIG:
    """Configuration for channels."""

    MAX_NAME_LENGTH: Final[int] = 100

    # Stored photo names: <prefix>-<epoch-ms>-<random><ext>
    PHOTO_PREFIX: Final[str] = "channel"


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters


# =============================================================================
# Realtime Configuration
# =============================================================================


class REALTIME_CONFIG:
    """Channel layer group names and event types pushed to clients."""

    CHANNEL_GROUP: Final[str] = "channel_{channel_id}"
    USER_GROUP: Final[str] = "user_{user_id}"

    # Channel layer handler on ChatConsumer
    HANDLER: Final[str] = "chat.event"

    EVENT_CHANNEL_CREATED: Final[str] = "channel.created"
    EVENT_CHANNEL_UPDATED: Final[str] = "channel.updated"
    EVENT_MEMBER_ADDED: Final[str] = "channel.member_added"
    EVENT_MEMBER_REMOVED: Final[str] = "channel.member_removed"
    EVENT_MESSAGE_CREATED: Final[str] = "message.created"
    EVENT_MESSAGE_UPDATED: Final[str] = "message.updated"
    EVENT_MESSAGE_DELETED: Final[str] = "message.deleted"
