"""
WebSocket consumer for realtime chat notifications.

The socket is receive-only: clients change state through the REST API and
learn about every committed change (their own included) from this feed.

Consumers:
    ChatConsumer: One connection per client

Authentication:
    The JWTAuthMiddleware attaches the user to self.scope["user"].
    Anonymous connections are closed with code 4001.

Channel Groups:
    user_<id>: joined on connect; direct messages and membership changes
    channel_<id>: joined for every channel the user administers or belongs
        to at connect time; joined/left live on member_added/member_removed

Message Types (to client):
    {"type": "<event>", "payload": {...}} where <event> is one of
    channel.created, channel.updated, channel.member_added,
    channel.member_removed, message.created, message.updated,
    message.deleted
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser
from django.db.models import Q

from chat.constants import REALTIME_CONFIG
from chat.models import Channel
from chat.realtime import channel_group, user_group

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    Relay chat events from the channel layer to one client.

    Attributes:
        user: Authenticated user (after connect)
        groups_joined: Channel layer groups this connection is in
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None
        self.groups_joined: set[str] = set()

    async def connect(self):
        user = self.scope.get("user")

        if not user or isinstance(user, AnonymousUser) or not user.is_authenticated:
            logger.warning("Rejected unauthenticated chat connection")
            await self.close(code=4001)
            return

        self.user = user

        await self._join(user_group(user.pk))
        for channel_id in await self._get_channel_ids():
            await self._join(channel_group(channel_id))

        await self.accept()
        logger.info(f"User {user.pk} connected to chat ({len(self.groups_joined)} groups)")

    async def disconnect(self, close_code):
        for group in list(self.groups_joined):
            await self._leave(group)
        if self.user is not None:
            logger.info(f"User {self.user.pk} disconnected from chat ({close_code})")

    async def receive_json(self, content, **kwargs):
        await self.send_json(
            {
                "type": "error",
                "payload": {"message": "This socket is receive-only; use the REST API"},
            }
        )

    async def chat_event(self, event):
        """
        Handle a broadcast from chat.realtime.ChatBroadcaster.

        Membership events addressed to this user also move the connection
        in or out of the channel's group.
        """
        event_type = event["event"]
        payload = event["payload"]

        if event_type in (
            REALTIME_CONFIG.EVENT_MEMBER_ADDED,
            REALTIME_CONFIG.EVENT_MEMBER_REMOVED,
        ) and payload.get("user_id") == self.user.pk:
            group = channel_group(payload["channel"]["id"])
            if event_type == REALTIME_CONFIG.EVENT_MEMBER_ADDED:
                await self._join(group)
            elif payload["channel"]["admin"]["id"] != self.user.pk:
                # The admin keeps the feed without a membership row
                await self._leave(group)
        elif event_type == REALTIME_CONFIG.EVENT_CHANNEL_CREATED:
            await self._join(channel_group(payload["id"]))

        await self.send_json({"type": event_type, "payload": payload})

    async def _join(self, group: str) -> None:
        if group in self.groups_joined:
            return
        await self.channel_layer.group_add(group, self.channel_name)
        self.groups_joined.add(group)

    async def _leave(self, group: str) -> None:
        if group not in self.groups_joined:
            return
        await self.channel_layer.group_discard(group, self.channel_name)
        self.groups_joined.discard(group)

    @database_sync_to_async
    def _get_channel_ids(self) -> list[int]:
        return list(
            Channel.objects.filter(Q(admin=self.user) | Q(memberships__user=self.user))
            .values_list("id", flat=True)
            .distinct()
        )
