"""
Tests for realtime event delivery from the service layer.

A fake client channel is subscribed to a group on the in-memory channel
layer, the operation runs with on_commit callbacks executed, and the event
is read back from the layer.
"""

from unittest.mock import patch

from asgiref.sync import async_to_sync

from chat.constants import REALTIME_CONFIG
from chat.realtime import ChatBroadcaster, channel_group, user_group
from chat.services import ChannelService, MessageService

CLIENT = "test-client"


def subscribe(layer, group):
    async_to_sync(layer.group_add)(group, CLIENT)


def next_event(layer):
    return async_to_sync(layer.receive)(CLIENT)


class BrokenLayer:
    async def group_send(self, group, message):
        raise RuntimeError("redis unavailable")


class RecordingLayer:
    def __init__(self):
        self.sent = []

    async def group_send(self, group, message):
        self.sent.append((group, message))


class TestGroups:
    def test_group_names(self):
        assert channel_group(7) == "channel_7"
        assert user_group(3) == "user_3"


class TestChannelEvents:
    def test_channel_created_reaches_admin_and_members(
        self, channel_layer, admin_user, member_user, django_capture_on_commit_callbacks
    ):
        subscribe(channel_layer, user_group(member_user.pk))

        with django_capture_on_commit_callbacks(execute=True):
            result = ChannelService.create_channel(admin_user, "Team", [member_user.pk])

        event = next_event(channel_layer)
        assert event["type"] == REALTIME_CONFIG.HANDLER
        assert event["event"] == REALTIME_CONFIG.EVENT_CHANNEL_CREATED
        assert event["payload"]["id"] == result.data.pk
        assert event["payload"]["admin"]["id"] == admin_user.pk

    def test_rename_reaches_channel_group(
        self, channel_layer, channel, admin_user, django_capture_on_commit_callbacks
    ):
        subscribe(channel_layer, channel_group(channel.pk))

        with django_capture_on_commit_callbacks(execute=True):
            ChannelService.rename_channel(admin_user, channel.pk, "Renamed")

        event = next_event(channel_layer)
        assert event["event"] == REALTIME_CONFIG.EVENT_CHANNEL_UPDATED
        assert event["payload"]["name"] == "Renamed"

    def test_member_added_reaches_new_member(
        self, channel_layer, channel, admin_user, other_user, django_capture_on_commit_callbacks
    ):
        subscribe(channel_layer, user_group(other_user.pk))

        with django_capture_on_commit_callbacks(execute=True):
            ChannelService.add_member(admin_user, channel.pk, other_user.email)

        event = next_event(channel_layer)
        assert event["event"] == REALTIME_CONFIG.EVENT_MEMBER_ADDED
        assert event["payload"]["user_id"] == other_user.pk
        assert event["payload"]["channel"]["id"] == channel.pk

    def test_member_removed_reaches_removed_member(
        self, channel_layer, channel, admin_user, member_user, django_capture_on_commit_callbacks
    ):
        subscribe(channel_layer, channel_group(channel.pk))

        with django_capture_on_commit_callbacks(execute=True):
            ChannelService.remove_member(admin_user, channel.pk, member_user.email)

        event = next_event(channel_layer)
        assert event["event"] == REALTIME_CONFIG.EVENT_MEMBER_REMOVED
        assert event["payload"]["channel"]["members"] == []


class TestMessageEvents:
    def test_channel_message_reaches_channel_group(
        self, channel_layer, channel, member_user, django_capture_on_commit_callbacks
    ):
        subscribe(channel_layer, channel_group(channel.pk))

        with django_capture_on_commit_callbacks(execute=True):
            result = MessageService.send_channel_message(member_user, channel.pk, "hello")

        event = next_event(channel_layer)
        assert event["event"] == REALTIME_CONFIG.EVENT_MESSAGE_CREATED
        assert event["payload"]["id"] == result.data.pk
        assert event["payload"]["content"] == "hello"
        assert event["payload"]["sender"]["id"] == member_user.pk

    def test_direct_message_reaches_recipient(
        self, channel_layer, admin_user, member_user, django_capture_on_commit_callbacks
    ):
        subscribe(channel_layer, user_group(member_user.pk))

        with django_capture_on_commit_callbacks(execute=True):
            MessageService.send_direct_message(admin_user, member_user.pk, "psst")

        event = next_event(channel_layer)
        assert event["event"] == REALTIME_CONFIG.EVENT_MESSAGE_CREATED
        assert event["payload"]["recipient"] == member_user.pk

    def test_direct_message_reaches_sender_connections(
        self, channel_layer, admin_user, member_user, django_capture_on_commit_callbacks
    ):
        subscribe(channel_layer, user_group(admin_user.pk))

        with django_capture_on_commit_callbacks(execute=True):
            MessageService.send_direct_message(admin_user, member_user.pk, "psst")

        assert next_event(channel_layer)["payload"]["content"] == "psst"

    def test_edit_carries_new_content(
        self, channel_layer, channel, channel_message, member_user,
        django_capture_on_commit_callbacks,
    ):
        subscribe(channel_layer, channel_group(channel.pk))

        with django_capture_on_commit_callbacks(execute=True):
            MessageService.edit_message(member_user, channel_message.pk, "edited")

        event = next_event(channel_layer)
        assert event["event"] == REALTIME_CONFIG.EVENT_MESSAGE_UPDATED
        assert event["payload"]["content"] == "edited"
        assert event["payload"]["is_edited"] is True

    def test_delete_sends_identifiers_only(
        self, channel_layer, channel, channel_message, member_user,
        django_capture_on_commit_callbacks,
    ):
        subscribe(channel_layer, channel_group(channel.pk))

        with django_capture_on_commit_callbacks(execute=True):
            MessageService.soft_delete_message(member_user, channel_message.pk)

        event = next_event(channel_layer)
        assert event["event"] == REALTIME_CONFIG.EVENT_MESSAGE_DELETED
        assert event["payload"] == {
            "id": channel_message.pk,
            "channel": channel.pk,
            "recipient": None,
        }

    def test_second_delete_sends_nothing(
        self, channel_message, member_user, django_capture_on_commit_callbacks
    ):
        MessageService.soft_delete_message(member_user, channel_message.pk)

        with django_capture_on_commit_callbacks() as callbacks:
            MessageService.soft_delete_message(member_user, channel_message.pk)

        assert callbacks == []


class TestNoEventOnFailure:
    def test_forbidden_rename(self, channel, member_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            ChannelService.rename_channel(member_user, channel.pk, "Nope")

        assert callbacks == []

    def test_rejected_message(self, channel, other_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            MessageService.send_channel_message(other_user, channel.pk, "let me in")

        assert callbacks == []

    def test_conflicting_promotion(
        self, channel, admin_user, member_user, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks() as callbacks:
            ChannelService.promote_member(
                admin_user, channel.pk, member_user.pk, expected_version=99
            )

        assert callbacks == []


class TestDeliveryFailures:
    def test_layer_error_does_not_fail_operation(
        self, channel, member_user, django_capture_on_commit_callbacks
    ):
        with patch("chat.realtime.get_channel_layer", return_value=BrokenLayer()):
            with django_capture_on_commit_callbacks(execute=True):
                result = MessageService.send_channel_message(member_user, channel.pk, "hello")

        assert result.success is True

    def test_missing_layer_is_ignored(
        self, channel, member_user, django_capture_on_commit_callbacks
    ):
        with patch("chat.realtime.get_channel_layer", return_value=None):
            with django_capture_on_commit_callbacks(execute=True):
                result = MessageService.send_channel_message(member_user, channel.pk, "hello")

        assert result.success is True

    def test_duplicate_groups_deliver_once(self, admin_user, django_capture_on_commit_callbacks):
        layer = RecordingLayer()

        with patch("chat.realtime.get_channel_layer", return_value=layer), \
                django_capture_on_commit_callbacks(execute=True):
            ChatBroadcaster.publish(
                [user_group(admin_user.pk), user_group(admin_user.pk)],
                "test.event",
                lambda: {"n": 1},
            )

        assert len(layer.sent) == 1
        assert layer.sent[0][1]["payload"] == {"n": 1}
