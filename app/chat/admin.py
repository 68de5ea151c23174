"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Channel management with inline memberships
- Message moderation (soft-deleted messages included)
"""

from django.contrib import admin

from chat.models import Channel, ChannelMembership, Message


class ChannelMembershipInline(admin.TabularInline):
    """Inline display of members in channel admin."""

    model = ChannelMembership
    extra = 0
    readonly_fields = ["created_at"]
    raw_id_fields = ["user"]


@admin.register(Channel)
class ChannelAdmin(admin.ModelAdmin):
    """Admin interface for Channel model."""

    list_display = [
        "id",
        "name",
        "admin",
        "version",
        "last_activity_at",
        "created_at",
    ]
    list_filter = ["created_at"]
    search_fields = ["name", "admin__email"]
    readonly_fields = ["created_at", "updated_at", "last_activity_at", "version"]
    raw_id_fields = ["admin"]
    inlines = [ChannelMembershipInline]
    ordering = ["-last_activity_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "channel",
        "sender",
        "recipient",
        "message_type",
        "content_preview",
        "is_pinned",
        "is_deleted",
        "created_at",
    ]
    list_filter = ["message_type", "is_pinned", "is_deleted", "created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = ["created_at", "updated_at", "deleted_at"]
    raw_id_fields = ["channel", "sender", "recipient"]
    ordering = ["-created_at"]

    def get_queryset(self, request):
        return Message.all_objects.select_related("sender", "channel")

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content
