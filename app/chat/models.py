"""
Chat system models.

This module defines the data models for the chat system supporting:
- Direct (1:1) messages between two users
- Named channels with a single admin and a set of members

Models:
    Channel: Named multi-member conversation owned by one admin
    ChannelMembership: A user's membership of a channel
    Message: Individual message, either direct (recipient) or in a channel

Design Decisions:
    - Exactly one admin per channel, stored on the channel row itself;
      transferring it bumps ``version`` so concurrent transfers can be
      detected with a conditional UPDATE
    - The admin is not required to hold a membership row; "participant"
      means admin or member
    - Membership rows are unique per (channel, user) at the database level
    - Messages are append-only; delete is a soft delete that hides the
      message from every read path while keeping it for audit
    - Message order is (created_at, id) ascending
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.managers import SoftDeleteManager
from core.model_mixins import SoftDeleteMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


class MessageType(models.TextChoices):
    """
    Type of message content.

    TEXT: User-authored text message
    FILE: Message carrying an uploaded attachment (file_url)
    """

    TEXT = "text", "Text"
    FILE = "file", "File"


class Channel(BaseModel):
    """
    A named conversation between an admin and any number of members.

    Fields:
        name: Display name (mutable by the admin)
        admin: The single admin (mutable only by promotion)
        photo: Relative path of the channel photo ("" when unset)
        last_activity_at: Creation time, bumped when a message is appended
        version: Concurrency token, incremented on every admin transfer

    Relationships:
        memberships: ChannelMembership rows
        members: Users holding a membership row
        messages: Messages posted to the channel
    """

    name = models.CharField(
        max_length=100,
        help_text="Channel display name",
    )

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="administered_channels",
        help_text="The channel's single admin",
    )

    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="ChannelMembership",
        related_name="channels",
        blank=True,
    )

    photo = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Relative path of the channel photo under MEDIA_ROOT",
    )

    last_activity_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="Creation time or time of the most recent message",
    )

    version = models.PositiveIntegerField(
        default=1,
        help_text="Incremented on every admin transfer (optimistic concurrency)",
    )

    class Meta:
        db_table = "chat_channel"
        ordering = ["-last_activity_at", "created_at", "id"]
        constraints = [
            # A stored photo belongs to exactly one channel
            models.UniqueConstraint(
                fields=["photo"],
                condition=~Q(photo=""),
                name="unique_channel_photo",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Channel: {self.name} ({self.pk})"

    def is_admin(self, user: User) -> bool:
        return user is not None and self.admin_id == user.pk

    def is_member(self, user: User) -> bool:
        """Whether the user holds a membership row (the admin may not)."""
        if user is None:
            return False
        return self.memberships.filter(user=user).exists()

    def is_participant(self, user: User) -> bool:
        """Admin or member."""
        return self.is_admin(user) or self.is_member(user)


class ChannelMembership(models.Model):
    """
    A user's membership of a channel.

    Adding and removing members are single INSERT/DELETE statements; the
    unique constraint makes a concurrent duplicate add fail instead of
    producing two rows.
    """

    channel = models.ForeignKey(
        Channel,
        on_delete=models.CASCADE,
        related_name="memberships",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="channel_memberships",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "chat_channel_membership"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["channel", "user"],
                name="unique_channel_membership",
            ),
        ]

    def __str__(self) -> str:
        return f"Membership: {self.user_id} in {self.channel_id}"


class Message(SoftDeleteMixin, BaseModel):
    """
    A message, either direct (recipient set) or posted to a channel.

    Soft Delete Behavior:
        When is_deleted=True the message is excluded from every read path
        (``Message.objects``) but stays in the table; ``Message.all_objects``
        still finds it by id.

    Fields:
        sender: User who sent the message
        recipient: Direct message recipient (null for channel messages)
        channel: Channel the message was posted to (null for direct messages)
        message_type: text or file
        content: Message text
        file_url: Relative path of the attachment ("" for text messages)
        is_edited: Set on first edit, never cleared
        is_pinned: Pinned by a staff user
    """

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="received_messages",
        help_text="Recipient of a direct message",
    )

    channel = models.ForeignKey(
        Channel,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages",
        help_text="Channel this message belongs to",
    )

    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Type of message (text or file)",
    )

    content = models.TextField(
        blank=True,
        default="",
        help_text="Message text",
    )

    file_url = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Relative path of the attachment",
    )

    is_edited = models.BooleanField(default=False)
    is_pinned = models.BooleanField(default=False)

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        base_manager_name = "all_objects"
        indexes = [
            # Messages in a channel, in read order
            models.Index(
                fields=["channel", "created_at", "id"],
                name="chat_msg_channel_idx",
            ),
            # Direct messages between a pair
            models.Index(
                fields=["sender", "recipient", "created_at"],
                name="chat_msg_direct_idx",
            ),
        ]
        constraints = [
            # Exactly one of recipient / channel
            models.CheckConstraint(
                condition=(
                    Q(recipient__isnull=False, channel__isnull=True)
                    | Q(recipient__isnull=True, channel__isnull=False)
                ),
                name="message_recipient_xor_channel",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        content_preview = (
            self.content[:50] + "..." if len(self.content) > 50 else self.content
        )
        deleted_str = " [deleted]" if self.is_deleted else ""
        return f"User {self.sender_id}: {content_preview}{deleted_str}"

    @property
    def is_direct(self) -> bool:
        return self.channel_id is None
