"""
Chat system service layer.

This module provides the business logic for the chat system.

Services:
    ChannelService: Channel registry (create, list, rename, photo, admin
        transfer, membership)
    MessageService: Message ledger (direct and channel messages, edit,
        soft delete, pin, attachment upload)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with a code from
      chat.constants.ErrorCode
    - Every state transition touches a single record and is a conditional
      UPDATE, a single INSERT/DELETE, or runs under a row lock
    - Media is written before the database commit and the superseded file
      is removed only after it
    - Realtime notifications go out after commit (see chat.realtime)

Usage:
    from chat.services import ChannelService, MessageService

    result = ChannelService.create_channel(user, "Team", [2, 3])
    if result.success:
        channel = result.data

    result = MessageService.edit_message(user, message_id, "fixed typo")
    if not result.success:
        print(result.error_code)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from authentication.models import User
from chat.constants import CHANNEL_CONFIG, ErrorCode
from chat.models import Channel, ChannelMembership, Message, MessageType
from chat.realtime import ChatBroadcaster
from core.exceptions import NotFoundError
from core.services import BaseService, ServiceResult
from media.storage import Artifact, MediaStore, epoch_millis, get_media_store
from media.validators import PhotoValidator

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile


@dataclass
class PhotoUpdate:
    """Result of a successful channel photo change."""

    channel: Channel
    photo_url: str | None


def _clean(value: str | None) -> str:
    return value.strip() if value else ""


class ChannelService(BaseService):
    """
    Service for channel registry operations.

    Methods:
        create_channel: Create a channel with the creator as admin
        list_channels_for_actor: Channels the user administers or belongs to
        get_channel: Single channel lookup
        get_channel_messages: Visible messages of a channel, oldest first
        rename_channel: Admin-only rename
        promote_member: Admin-only transfer of the admin role to a member
        add_member / remove_member: Membership changes by email
        set_channel_photo: Admin-only photo replacement
    """

    @classmethod
    def _get_channel(cls, channel_id) -> Channel | None:
        if channel_id is None:
            return None
        return Channel.objects.filter(pk=channel_id).first()

    @classmethod
    def _with_members(cls, channel_id) -> Channel:
        return (
            Channel.objects.select_related("admin")
            .prefetch_related("members")
            .get(pk=channel_id)
        )

    @classmethod
    def create_channel(
        cls,
        creator: User | None,
        name: str,
        member_ids: list[int] | None = None,
    ) -> ServiceResult[Channel]:
        """
        Create a channel. The creator becomes admin, member_ids become members.

        Args:
            creator: Requesting user (must resolve to an active user)
            name: Channel name (1-100 characters after trimming)
            member_ids: User ids to add as members; duplicates are ignored

        Returns:
            ServiceResult with the new Channel

        Error codes:
            INVALID_REQUEST: Blank or over-long name
            INVALID_ACTOR: Creator does not resolve to an active user
            INVALID_MEMBERS: At least one member id does not resolve
                (nothing is persisted)
        """
        name = _clean(name)
        if not name or len(name) > CHANNEL_CONFIG.MAX_NAME_LENGTH:
            return ServiceResult.failure(
                "Channel name must be between 1 and "
                f"{CHANNEL_CONFIG.MAX_NAME_LENGTH} characters",
                error_code=ErrorCode.INVALID_REQUEST,
            )

        admin = User.objects.resolve_by_id(creator.pk if creator else None)
        if admin is None:
            return ServiceResult.failure(
                "Channel creator is not a valid user",
                error_code=ErrorCode.INVALID_ACTOR,
            )

        members, missing = User.objects.resolve_many(member_ids or [])
        if missing:
            return ServiceResult.failure(
                "Some members are not valid users",
                error_code=ErrorCode.INVALID_MEMBERS,
                errors={"members": [f"Unknown user id {uid}" for uid in missing]},
            )

        with cls.atomic():
            channel = Channel.objects.create(name=name, admin=admin)
            ChannelMembership.objects.bulk_create(
                [ChannelMembership(channel=channel, user=member) for member in members]
            )

        ChatBroadcaster.channel_created(channel, [member.pk for member in members])

        cls.get_logger().info(
            f"User {admin.pk} created channel {channel.pk} "
            f"'{name}' with {len(members)} member(s)"
        )

        return ServiceResult.success(cls._with_members(channel.pk))

    @classmethod
    def list_channels_for_actor(cls, actor: User) -> ServiceResult[list[Channel]]:
        """
        Channels where the actor is admin or member.

        Ordered by most recent activity first, then oldest created, then id.
        """
        channels = (
            Channel.objects.filter(Q(admin=actor) | Q(memberships__user=actor))
            .distinct()
            .select_related("admin")
            .prefetch_related("members")
            .order_by("-last_activity_at", "created_at", "id")
        )
        return ServiceResult.success(list(channels))

    @classmethod
    def get_channel(cls, channel_id) -> ServiceResult[Channel]:
        channel = (
            Channel.objects.select_related("admin")
            .prefetch_related("members")
            .filter(pk=channel_id)
            .first()
        )
        if channel is None:
            return ServiceResult.failure("Channel not found", error_code=ErrorCode.NOT_FOUND)
        return ServiceResult.success(channel)

    @classmethod
    def get_channel_messages(cls, channel_id) -> ServiceResult[list[Message]]:
        """
        Non-deleted messages of a channel in (created_at, id) order.

        Error codes:
            NOT_FOUND: Channel does not exist
        """
        if not Channel.objects.filter(pk=channel_id).exists():
            return ServiceResult.failure("Channel not found", error_code=ErrorCode.NOT_FOUND)

        messages = (
            Message.objects.filter(channel_id=channel_id)
            .select_related("sender")
            .order_by("created_at", "id")
        )
        return ServiceResult.success(list(messages))

    @classmethod
    def rename_channel(
        cls,
        actor: User,
        channel_id,
        new_name: str,
    ) -> ServiceResult[Channel]:
        """
        Rename a channel. Admin only.

        The UPDATE is conditioned on the actor still being the admin, so a
        rename racing an admin transfer cannot slip through.

        Error codes:
            NOT_FOUND: Channel does not exist
            FORBIDDEN: Actor is not the admin
            INVALID_REQUEST: Blank or over-long name
            CONFLICT: Admin changed between the check and the write
        """
        channel = cls._get_channel(channel_id)
        if channel is None:
            return ServiceResult.failure("Channel not found", error_code=ErrorCode.NOT_FOUND)

        if not channel.is_admin(actor):
            return ServiceResult.failure(
                "Only the channel admin can rename the channel",
                error_code=ErrorCode.FORBIDDEN,
            )

        new_name = _clean(new_name)
        if not new_name or len(new_name) > CHANNEL_CONFIG.MAX_NAME_LENGTH:
            return ServiceResult.failure(
                "Channel name must be between 1 and "
                f"{CHANNEL_CONFIG.MAX_NAME_LENGTH} characters",
                error_code=ErrorCode.INVALID_REQUEST,
            )

        updated = Channel.objects.filter(pk=channel.pk, admin_id=actor.pk).update(
            name=new_name,
            updated_at=timezone.now(),
        )
        if not updated:
            return ServiceResult.failure(
                "The channel admin changed, reload and try again",
                error_code=ErrorCode.CONFLICT,
            )

        ChatBroadcaster.channel_updated(channel)
        cls.get_logger().info(f"User {actor.pk} renamed channel {channel.pk} to '{new_name}'")

        return ServiceResult.success(cls._with_members(channel.pk))

    @classmethod
    def promote_member(
        cls,
        actor: User,
        channel_id,
        target_user_id,
        expected_version: int | None = None,
    ) -> ServiceResult[Channel]:
        """
        Transfer the admin role to a member.

        The transfer is a single compare-and-swap UPDATE keyed on
        (admin = actor, version = expected_version). Two transfers prepared
        against the same version cannot both succeed: the loser matches
        zero rows and gets CONFLICT. The previous admin keeps (or gains) a
        membership row in the same transaction.

        Args:
            actor: Current admin
            channel_id: Channel to transfer
            target_user_id: Member who becomes admin
            expected_version: Channel version the caller last saw; defaults
                to the version read here

        Error codes:
            NOT_FOUND: Channel does not exist
            FORBIDDEN: Actor is not the admin
            INVALID_REQUEST: Target is already the admin
            NOT_A_MEMBER: Target is not a member
            CONFLICT: Admin or version changed concurrently
        """
        channel = cls._get_channel(channel_id)
        if channel is None:
            return ServiceResult.failure("Channel not found", error_code=ErrorCode.NOT_FOUND)

        if not channel.is_admin(actor):
            return ServiceResult.failure(
                "Only the channel admin can promote members",
                error_code=ErrorCode.FORBIDDEN,
            )

        if target_user_id == actor.pk:
            return ServiceResult.failure(
                "You are already the channel admin",
                error_code=ErrorCode.INVALID_REQUEST,
            )

        if not ChannelMembership.objects.filter(
            channel_id=channel.pk, user_id=target_user_id
        ).exists():
            return ServiceResult.failure(
                "User is not a member of this channel",
                error_code=ErrorCode.NOT_A_MEMBER,
            )

        version = expected_version if expected_version is not None else channel.version

        with cls.atomic():
            updated = Channel.objects.filter(
                pk=channel.pk,
                admin_id=actor.pk,
                version=version,
            ).update(
                admin_id=target_user_id,
                version=F("version") + 1,
                updated_at=timezone.now(),
            )
            if not updated:
                cls.get_logger().info(
                    f"Admin transfer of channel {channel.pk} by user {actor.pk} "
                    f"lost a race (expected version {version})"
                )
                return ServiceResult.failure(
                    "The channel changed, reload and try again",
                    error_code=ErrorCode.CONFLICT,
                )

            ChannelMembership.objects.bulk_create(
                [ChannelMembership(channel_id=channel.pk, user_id=actor.pk)],
                ignore_conflicts=True,
            )

        ChatBroadcaster.channel_updated(channel)
        cls.get_logger().info(
            f"Transferred admin of channel {channel.pk} "
            f"from user {actor.pk} to user {target_user_id}"
        )

        return ServiceResult.success(cls._with_members(channel.pk))

    @classmethod
    def add_member(cls, actor: User, channel_id, email: str) -> ServiceResult[Channel]:
        """
        Add the user with this email as a member.

        Any authenticated user may add members.

        Error codes:
            NOT_FOUND: Channel does not exist
            USER_NOT_FOUND: No active user with this email
            ALREADY_MEMBER: User already holds a membership row
        """
        channel = cls._get_channel(channel_id)
        if channel is None:
            return ServiceResult.failure("Channel not found", error_code=ErrorCode.NOT_FOUND)

        user = User.objects.resolve_by_email(email)
        if user is None:
            return ServiceResult.failure("User not found", error_code=ErrorCode.USER_NOT_FOUND)

        already_member = ServiceResult.failure(
            "User is already a member of this channel",
            error_code=ErrorCode.ALREADY_MEMBER,
        )
        if ChannelMembership.objects.filter(channel=channel, user=user).exists():
            return already_member

        try:
            with cls.atomic():
                ChannelMembership.objects.create(channel=channel, user=user)
        except IntegrityError:
            # Concurrent add won the unique constraint
            return already_member

        ChatBroadcaster.member_added(channel, user.pk)
        cls.get_logger().info(f"User {actor.pk} added user {user.pk} to channel {channel.pk}")

        return ServiceResult.success(cls._with_members(channel.pk))

    @classmethod
    def remove_member(cls, actor: User, channel_id, email: str) -> ServiceResult[Channel]:
        """
        Remove the user with this email from the members.

        Any authenticated user may remove members.

        Error codes:
            NOT_FOUND: Channel does not exist
            USER_NOT_FOUND: No active user with this email
            NOT_A_MEMBER: User holds no membership row
        """
        channel = cls._get_channel(channel_id)
        if channel is None:
            return ServiceResult.failure("Channel not found", error_code=ErrorCode.NOT_FOUND)

        user = User.objects.resolve_by_email(email)
        if user is None:
            return ServiceResult.failure("User not found", error_code=ErrorCode.USER_NOT_FOUND)

        deleted, _ = ChannelMembership.objects.filter(channel=channel, user=user).delete()
        if not deleted:
            return ServiceResult.failure(
                "User is not a member of this channel",
                error_code=ErrorCode.NOT_A_MEMBER,
            )

        ChatBroadcaster.member_removed(channel, user.pk)
        cls.get_logger().info(
            f"User {actor.pk} removed user {user.pk} from channel {channel.pk}"
        )

        return ServiceResult.success(cls._with_members(channel.pk))

    @classmethod
    def set_channel_photo(
        cls,
        actor: User,
        channel_id,
        upload: UploadedFile | None,
        store: MediaStore | None = None,
    ) -> ServiceResult[PhotoUpdate]:
        """
        Replace the channel photo. Admin only.

        Sequence:
            1. Validate size and sniffed type (nothing written on failure)
            2. Stage the new file under channels/
            3. Lock the channel row, swap the path, commit
            4. After commit, delete the previous file (best effort)

        Any failure before step 3 commits removes the staged file.

        Error codes:
            NO_FILE: No upload
            INVALID_MEDIA: Too large, empty, or not JPEG/PNG/GIF
            NOT_FOUND: Channel does not exist
            FORBIDDEN: Actor is not the admin
            UNEXPECTED: Storage or database failure
        """
        if upload is None:
            return ServiceResult.failure("File is required", error_code=ErrorCode.NO_FILE)

        validation = PhotoValidator().validate(upload)
        if not validation.is_valid:
            return ServiceResult.failure(
                validation.error,
                error_code=ErrorCode.INVALID_MEDIA,
                errors={"photo": [validation.error]},
            )

        store = store or get_media_store()

        try:
            with store.stage(
                upload,
                MediaStore.CHANNELS_DIR,
                prefix=CHANNEL_CONFIG.PHOTO_PREFIX,
                extension=validation.extension,
            ) as artifact:
                channel = cls._get_channel(channel_id)
                if channel is None:
                    return ServiceResult.failure(
                        "Channel not found", error_code=ErrorCode.NOT_FOUND
                    )

                forbidden = ServiceResult.failure(
                    "Only the channel admin can change the photo",
                    error_code=ErrorCode.FORBIDDEN,
                )
                if not channel.is_admin(actor):
                    return forbidden

                with cls.atomic():
                    locked = Channel.objects.select_for_update().get(pk=channel.pk)
                    if not locked.is_admin(actor):
                        return forbidden

                    previous = locked.photo
                    locked.photo = artifact.path
                    locked.save(update_fields=["photo", "updated_at"])

                    if previous and previous != artifact.path:
                        transaction.on_commit(lambda: store.discard(previous))

                artifact.commit()
        except (DatabaseError, OSError) as e:
            return cls.handle_exception(e, f"Failed to set photo of channel {channel_id}")

        ChatBroadcaster.channel_updated(channel)
        cls.get_logger().info(
            f"User {actor.pk} set photo of channel {channel.pk} to {artifact.path}"
        )

        return ServiceResult.success(
            PhotoUpdate(
                channel=cls._with_members(channel.pk),
                photo_url=store.url(artifact.path),
            )
        )


class MessageService(BaseService):
    """
    Service for message ledger operations.

    Methods:
        get_conversation: Direct messages between two users
        send_direct_message / send_channel_message: Append a message
        upload_attachment: Store a file for a later message
        soft_delete_message: Sender-only soft delete
        edit_message: Sender or staff edit
        pin_message: Staff-only pin
    """

    @classmethod
    def _get_message(cls, message_id) -> Message | None:
        """Lookup by id that also finds soft-deleted messages."""
        return Message.all_objects.select_related("sender").filter(pk=message_id).first()

    @classmethod
    def _reload(cls, message: Message) -> Message:
        return Message.all_objects.select_related("sender").get(pk=message.pk)

    @classmethod
    def _check_body(
        cls,
        content: str,
        file_url: str,
        store: MediaStore | None,
    ) -> ServiceResult | None:
        """Return a failure if the message would be empty or point at an unknown file."""
        if not content and not file_url:
            return ServiceResult.failure(
                "Message needs content or a file",
                error_code=ErrorCode.INVALID_REQUEST,
                errors={"content": ["This field is required."]},
            )
        if file_url:
            store = store or get_media_store()
            if not file_url.startswith(f"{MediaStore.FILES_DIR}/") or not store.exists(file_url):
                return ServiceResult.failure(
                    "Unknown attachment",
                    error_code=ErrorCode.INVALID_REQUEST,
                    errors={"file_url": ["Upload the file first."]},
                )
        return None

    @classmethod
    def get_conversation(cls, user_a_id, user_b_id) -> ServiceResult[list[Message]]:
        """
        Non-deleted direct messages between two users, oldest first.

        Error codes:
            INVALID_REQUEST: Either id is missing
        """
        validation = cls.validate_required(user_a=user_a_id, user_b=user_b_id)
        if validation is not None:
            return validation

        messages = (
            Message.objects.filter(
                Q(sender_id=user_a_id, recipient_id=user_b_id)
                | Q(sender_id=user_b_id, recipient_id=user_a_id)
            )
            .select_related("sender")
            .order_by("created_at", "id")
        )
        return ServiceResult.success(list(messages))

    @classmethod
    def send_direct_message(
        cls,
        sender: User,
        recipient_id,
        content: str = "",
        file_url: str = "",
        store: MediaStore | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a direct message.

        Error codes:
            USER_NOT_FOUND: Recipient does not resolve
            INVALID_REQUEST: Neither content nor file, or unknown file
        """
        recipient = User.objects.resolve_by_id(recipient_id)
        if recipient is None:
            return ServiceResult.failure(
                "Recipient not found", error_code=ErrorCode.USER_NOT_FOUND
            )

        content, file_url = _clean(content), _clean(file_url)
        invalid = cls._check_body(content, file_url, store)
        if invalid is not None:
            return invalid

        message = Message.objects.create(
            sender=sender,
            recipient=recipient,
            message_type=MessageType.FILE if file_url else MessageType.TEXT,
            content=content,
            file_url=file_url,
        )

        ChatBroadcaster.message_created(message)
        cls.get_logger().debug(
            f"User {sender.pk} sent direct message {message.pk} to user {recipient.pk}"
        )

        return ServiceResult.success(cls._reload(message))

    @classmethod
    def send_channel_message(
        cls,
        sender: User,
        channel_id,
        content: str = "",
        file_url: str = "",
        store: MediaStore | None = None,
    ) -> ServiceResult[Message]:
        """
        Post a message to a channel and bump its last activity.

        Error codes:
            NOT_FOUND: Channel does not exist
            FORBIDDEN: Sender is neither admin nor member
            INVALID_REQUEST: Neither content nor file, or unknown file
        """
        channel = ChannelService._get_channel(channel_id)
        if channel is None:
            return ServiceResult.failure("Channel not found", error_code=ErrorCode.NOT_FOUND)

        if not channel.is_participant(sender):
            return ServiceResult.failure(
                "You are not a participant in this channel",
                error_code=ErrorCode.FORBIDDEN,
            )

        content, file_url = _clean(content), _clean(file_url)
        invalid = cls._check_body(content, file_url, store)
        if invalid is not None:
            return invalid

        with cls.atomic():
            message = Message.objects.create(
                sender=sender,
                channel=channel,
                message_type=MessageType.FILE if file_url else MessageType.TEXT,
                content=content,
                file_url=file_url,
            )
            Channel.objects.filter(pk=channel.pk).update(
                last_activity_at=message.created_at
            )

        ChatBroadcaster.message_created(message)
        cls.get_logger().debug(
            f"User {sender.pk} sent message {message.pk} to channel {channel.pk}"
        )

        return ServiceResult.success(cls._reload(message))

    @classmethod
    def upload_attachment(
        cls,
        upload: UploadedFile | None,
        store: MediaStore | None = None,
    ) -> ServiceResult[Artifact]:
        """
        Store an attachment at files/<epoch-ms>/<basename>.

        The upload is staged first and moved into place; if the move fails
        the staged copy is deleted. No size or type restriction applies.

        Returns:
            ServiceResult with the Artifact (its path goes into a message's
            file_url)

        Error codes:
            NO_FILE: No upload
            UNEXPECTED: Storage failure
        """
        if upload is None:
            return ServiceResult.failure("File is required", error_code=ErrorCode.NO_FILE)

        store = store or get_media_store()
        basename = store.safe_basename(upload.name)

        try:
            with store.stage(upload) as artifact:
                store.relocate(
                    artifact,
                    f"{MediaStore.FILES_DIR}/{epoch_millis()}/{basename}",
                )
                artifact.commit()
        except (NotFoundError, OSError) as e:
            return cls.handle_exception(e, f"Failed to store attachment {basename}")

        cls.get_logger().info(f"Stored attachment {artifact.path} ({artifact.size} bytes)")

        return ServiceResult.success(artifact)

    @classmethod
    def soft_delete_message(cls, actor: User, message_id) -> ServiceResult[Message]:
        """
        Soft delete a message. Sender only.

        Deleting an already deleted message succeeds and keeps the original
        deleted_at.

        Error codes:
            NOT_FOUND: Message does not exist
            FORBIDDEN: Actor is not the sender
        """
        message = cls._get_message(message_id)
        if message is None:
            return ServiceResult.failure("Message not found", error_code=ErrorCode.NOT_FOUND)

        if message.sender_id != actor.pk:
            return ServiceResult.failure(
                "You can only delete your own messages",
                error_code=ErrorCode.FORBIDDEN,
            )

        # Soft delete of the non-deleted rows only
        deleted, _ = Message.objects.filter(pk=message.pk).delete()

        if deleted:
            ChatBroadcaster.message_deleted(message)
            cls.get_logger().info(f"User {actor.pk} deleted message {message.pk}")

        return ServiceResult.success(cls._reload(message))

    @classmethod
    def edit_message(
        cls,
        actor: User,
        message_id,
        new_content: str,
    ) -> ServiceResult[Message]:
        """
        Replace a message's content and mark it edited.

        Allowed to the sender and to staff users.

        Error codes:
            NOT_FOUND: Message does not exist
            FORBIDDEN: Actor is neither sender nor staff
            INVALID_REQUEST: Content missing
        """
        message = cls._get_message(message_id)
        if message is None:
            return ServiceResult.failure("Message not found", error_code=ErrorCode.NOT_FOUND)

        if message.sender_id != actor.pk and not actor.is_staff:
            return ServiceResult.failure(
                "You can only edit your own messages",
                error_code=ErrorCode.FORBIDDEN,
            )

        new_content = _clean(new_content)
        if not new_content:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code=ErrorCode.INVALID_REQUEST,
                errors={"content": ["This field is required."]},
            )

        Message.all_objects.filter(pk=message.pk).update(
            content=new_content,
            is_edited=True,
            updated_at=timezone.now(),
        )

        ChatBroadcaster.message_updated(message)
        cls.get_logger().info(f"User {actor.pk} edited message {message.pk}")

        return ServiceResult.success(cls._reload(message))

    @classmethod
    def pin_message(cls, actor: User, message_id) -> ServiceResult[Message]:
        """
        Pin a message. Staff only; there is no unpin.

        Error codes:
            NOT_FOUND: Message does not exist
            FORBIDDEN: Actor is not staff
            ALREADY_PINNED: Message was already pinned
        """
        message = cls._get_message(message_id)
        if message is None:
            return ServiceResult.failure("Message not found", error_code=ErrorCode.NOT_FOUND)

        if not actor.is_staff:
            return ServiceResult.failure(
                "Only staff can pin messages",
                error_code=ErrorCode.FORBIDDEN,
            )

        pinned = Message.all_objects.filter(pk=message.pk, is_pinned=False).update(
            is_pinned=True,
            updated_at=timezone.now(),
        )
        if not pinned:
            return ServiceResult.failure(
                "Message is already pinned",
                error_code=ErrorCode.ALREADY_PINNED,
            )

        ChatBroadcaster.message_updated(message)
        cls.get_logger().info(f"User {actor.pk} pinned message {message.pk}")

        return ServiceResult.success(cls._reload(message))
