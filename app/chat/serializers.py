"""
Serializers for chat API.

Read serializers:
    ChannelSerializer: Channel with admin, members and photo URL
    MessageSerializer: Message with embedded sender display data
    AttachmentSerializer: Result of an attachment upload

Request serializers (one per operation, each with its required fields):
    ChannelCreateSerializer, ChannelRenameSerializer, PromoteMemberSerializer,
    MemberEmailSerializer, ChannelPhotoSerializer, SendChannelMessageSerializer,
    SendDirectMessageSerializer, MessageEditSerializer, AttachmentUploadSerializer

Design Decisions:
    - Read and write serializers are separate
    - Request serializers only check shape; authorization and existence
      checks live in the services
    - Stored media paths are relative; *_url fields add the public host
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer
from chat.constants import CHANNEL_CONFIG, MESSAGE_CONFIG
from chat.models import Channel, Message
from media.storage import get_media_store


def _public_url(serializer: serializers.Serializer, path: str) -> str | None:
    store = serializer.context.get("store") or get_media_store()
    return store.url(path)


# =============================================================================
# Channel Serializers
# =============================================================================


class ChannelSerializer(serializers.ModelSerializer):
    """
    Channel read serializer.

    ``photo`` is the stored relative path; ``photo_url`` is the absolute
    public URL (null when no photo is set).
    """

    admin = UserSerializer(read_only=True)
    members = UserSerializer(many=True, read_only=True)
    photo_url = serializers.SerializerMethodField(
        help_text="Public URL of the channel photo"
    )

    class Meta:
        model = Channel
        fields = [
            "id",
            "name",
            "admin",
            "members",
            "photo",
            "photo_url",
            "last_activity_at",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_photo_url(self, obj: Channel) -> str | None:
        return _public_url(self, obj.photo)


class ChannelCreateSerializer(serializers.Serializer):
    """Create a channel; the requester becomes its admin."""

    name = serializers.CharField(max_length=CHANNEL_CONFIG.MAX_NAME_LENGTH)
    members = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=True,
        default=list,
        help_text="User IDs to add as members",
    )


class ChannelRenameSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=CHANNEL_CONFIG.MAX_NAME_LENGTH)


class PromoteMemberSerializer(serializers.Serializer):
    """
    Transfer the admin role to a member.

    ``expected_version`` is the channel version the client last saw; when
    given, the transfer fails with CONFLICT if another transfer got there
    first.
    """

    user_id = serializers.IntegerField(min_value=1)
    expected_version = serializers.IntegerField(min_value=1, required=False)


class MemberEmailSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ChannelPhotoSerializer(serializers.Serializer):
    """Multipart upload; a missing file is reported by the service as NO_FILE."""

    photo = serializers.FileField(required=False, allow_empty_file=True)


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """Message read serializer with sender display data."""

    sender = UserSerializer(read_only=True)
    file_public_url = serializers.SerializerMethodField(
        help_text="Public URL of the attachment"
    )

    class Meta:
        model = Message
        fields = [
            "id",
            "sender",
            "recipient",
            "channel",
            "message_type",
            "content",
            "file_url",
            "file_public_url",
            "is_edited",
            "is_pinned",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_file_public_url(self, obj: Message) -> str | None:
        return _public_url(self, obj.file_url)


class _MessageBodySerializer(serializers.Serializer):
    """Text and/or an attachment path from a prior upload."""

    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
    file_url = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        default="",
    )


class SendChannelMessageSerializer(_MessageBodySerializer):
    pass


class SendDirectMessageSerializer(_MessageBodySerializer):
    recipient = serializers.IntegerField(min_value=1)


class MessageEditSerializer(serializers.Serializer):
    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        allow_blank=True,
    )


class AttachmentUploadSerializer(serializers.Serializer):
    file = serializers.FileField(required=False, allow_empty_file=True)


class AttachmentSerializer(serializers.Serializer):
    """Where an uploaded attachment ended up."""

    file_url = serializers.CharField(help_text="Relative path to send as a message's file_url")
    public_url = serializers.CharField()
    size = serializers.IntegerField()
