"""
Chat app: channel registry and message ledger.

This app handles:
- Channels (create, rename, photo, admin transfer, membership)
- Direct and channel messages (send, edit, soft delete, pin)
- Attachment uploads via the media app
- WebSocket notifications of committed changes

Related apps:
    - authentication: User model for admins, members and senders
    - media: MediaStore for channel photos and attachments

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the WebSocket handler.
    See realtime.py for how services publish events.

Usage:
    from chat.services import ChannelService, MessageService

    result = ChannelService.create_channel(user, "Team", [other_user.pk])
    channel = result.data

    result = MessageService.send_channel_message(user, channel.pk, "Hello!")
"""
