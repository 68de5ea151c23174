"""
Realtime notifications for committed chat state changes.

Services call into ChatBroadcaster after a successful mutation. Delivery is
deferred with ``transaction.on_commit`` so clients never see state that was
rolled back, and it is fire-and-forget: a failing channel layer is logged
and never affects the result of the operation that triggered it.

Channel layer message format (handled by ChatConsumer.chat_event):
    {"type": "chat.event", "event": "<event type>", "payload": {...}}

Groups:
    channel_<id>: every connected participant of a channel
    user_<id>: every connection of one user
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from chat.constants import REALTIME_CONFIG

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from chat.models import Channel, Message

logger = logging.getLogger(__name__)


def channel_group(channel_id) -> str:
    return REALTIME_CONFIG.CHANNEL_GROUP.format(channel_id=channel_id)


def user_group(user_id) -> str:
    return REALTIME_CONFIG.USER_GROUP.format(user_id=user_id)


class ChatBroadcaster:
    """
    Push entity state to connected clients once the transaction commits.

    Payloads are built lazily inside the on_commit callback, so they reflect
    the committed row rather than the in-memory instance.
    """

    @classmethod
    def publish(
        cls,
        groups: Iterable[str],
        event_type: str,
        build_payload: Callable[[], dict],
    ) -> None:
        """Schedule delivery of one event to several groups after commit."""
        groups = list(dict.fromkeys(groups))
        transaction.on_commit(lambda: cls._deliver(groups, event_type, build_payload))

    @classmethod
    def _deliver(cls, groups: list[str], event_type: str, build_payload) -> None:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.debug(f"No channel layer configured, dropping {event_type}")
            return

        try:
            payload = build_payload()
        except Exception as e:
            logger.warning(f"Could not build {event_type} payload: {e}", exc_info=True)
            return

        message = {
            "type": REALTIME_CONFIG.HANDLER,
            "event": event_type,
            "payload": payload,
        }
        for group in groups:
            try:
                async_to_sync(channel_layer.group_send)(group, message)
            except Exception as e:
                logger.warning(f"Failed to broadcast {event_type} to {group}: {e}")

    # -------------------------------------------------------------------------
    # Channel events
    # -------------------------------------------------------------------------

    @classmethod
    def channel_created(cls, channel: Channel, member_ids: Iterable[int]) -> None:
        groups = [user_group(channel.admin_id)] + [user_group(uid) for uid in member_ids]
        cls.publish(
            groups,
            REALTIME_CONFIG.EVENT_CHANNEL_CREATED,
            lambda: _channel_payload(channel.pk),
        )

    @classmethod
    def channel_updated(cls, channel: Channel) -> None:
        cls.publish(
            [channel_group(channel.pk)],
            REALTIME_CONFIG.EVENT_CHANNEL_UPDATED,
            lambda: _channel_payload(channel.pk),
        )

    @classmethod
    def member_added(cls, channel: Channel, user_id: int) -> None:
        """Notify the channel and the new member (whose sockets then join the group)."""
        cls.publish(
            [channel_group(channel.pk), user_group(user_id)],
            REALTIME_CONFIG.EVENT_MEMBER_ADDED,
            lambda: {"channel": _channel_payload(channel.pk), "user_id": user_id},
        )

    @classmethod
    def member_removed(cls, channel: Channel, user_id: int) -> None:
        """The removed member is still in the channel group and leaves it on receipt."""
        cls.publish(
            [channel_group(channel.pk)],
            REALTIME_CONFIG.EVENT_MEMBER_REMOVED,
            lambda: {"channel": _channel_payload(channel.pk), "user_id": user_id},
        )

    # -------------------------------------------------------------------------
    # Message events
    # -------------------------------------------------------------------------

    @classmethod
    def message_created(cls, message: Message) -> None:
        cls.publish(
            _message_groups(message),
            REALTIME_CONFIG.EVENT_MESSAGE_CREATED,
            lambda: _message_payload(message.pk),
        )

    @classmethod
    def message_updated(cls, message: Message) -> None:
        cls.publish(
            _message_groups(message),
            REALTIME_CONFIG.EVENT_MESSAGE_UPDATED,
            lambda: _message_payload(message.pk),
        )

    @classmethod
    def message_deleted(cls, message: Message) -> None:
        """Deleted messages are never serialized; clients only get the id."""
        cls.publish(
            _message_groups(message),
            REALTIME_CONFIG.EVENT_MESSAGE_DELETED,
            lambda: {
                "id": message.pk,
                "channel": message.channel_id,
                "recipient": message.recipient_id,
            },
        )


def _message_groups(message: Message) -> list[str]:
    if message.channel_id is not None:
        return [channel_group(message.channel_id)]
    return [user_group(message.sender_id), user_group(message.recipient_id)]


def _channel_payload(channel_id) -> dict:
    from chat.models import Channel
    from chat.serializers import ChannelSerializer

    channel = Channel.objects.select_related("admin").prefetch_related("members").get(pk=channel_id)
    return dict(ChannelSerializer(channel).data)


def _message_payload(message_id) -> dict:
    from chat.models import Message
    from chat.serializers import MessageSerializer

    message = Message.all_objects.select_related("sender").get(pk=message_id)
    return dict(MessageSerializer(message).data)
