"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ChannelViewSet: Channel registry and channel messages
- MessageViewSet: Direct messages, attachments and message moderation

URL Structure:
    /api/v1/chat/channels/                          GET, POST
    /api/v1/chat/channels/{id}/                     GET
    /api/v1/chat/channels/{id}/messages/            GET, POST
    /api/v1/chat/channels/{id}/name/                PATCH
    /api/v1/chat/channels/{id}/promote/             POST
    /api/v1/chat/channels/{id}/members/             POST, DELETE
    /api/v1/chat/channels/{id}/photo/               POST (multipart)
    /api/v1/chat/messages/conversation/{user_id}/   GET
    /api/v1/chat/messages/direct/                   POST
    /api/v1/chat/messages/upload/                   POST (multipart)
    /api/v1/chat/messages/{id}/                     PATCH, DELETE
    /api/v1/chat/messages/{id}/pin/                 POST

Design Decisions:
    - Views only parse the request and render the result; all checks live
      in the service layer
    - Failures render as {"error", "error_code"} with the status mapped
      from the error code (chat.constants.ERROR_STATUS)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.constants import ERROR_STATUS
from chat.serializers import (
    AttachmentSerializer,
    AttachmentUploadSerializer,
    ChannelCreateSerializer,
    ChannelPhotoSerializer,
    ChannelRenameSerializer,
    ChannelSerializer,
    MemberEmailSerializer,
    MessageEditSerializer,
    MessageSerializer,
    PromoteMemberSerializer,
    SendChannelMessageSerializer,
    SendDirectMessageSerializer,
)
from chat.services import ChannelService, MessageService
from core.services import ServiceResult
from media.storage import get_media_store

ERROR_RESPONSES = {
    400: OpenApiResponse(description="Invalid request"),
    403: OpenApiResponse(description="Not allowed for this user"),
    404: OpenApiResponse(description="Channel, message or user not found"),
}


def failure_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult with the status for its error code."""
    body = {"error": result.error, "error_code": result.error_code}
    if result.errors:
        body["errors"] = result.errors
    return Response(
        body,
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


@extend_schema_view(
    list=extend_schema(
        operation_id="list_channels",
        summary="List channels",
        description="Channels the current user administers or belongs to, most recently active first.",
        responses={200: ChannelSerializer(many=True)},
        tags=["Chat - Channels"],
    ),
    create=extend_schema(
        operation_id="create_channel",
        summary="Create channel",
        request=ChannelCreateSerializer,
        responses={201: ChannelSerializer, **ERROR_RESPONSES},
        tags=["Chat - Channels"],
    ),
    retrieve=extend_schema(
        operation_id="get_channel",
        summary="Get channel",
        responses={200: ChannelSerializer, 404: ERROR_RESPONSES[404]},
        tags=["Chat - Channels"],
    ),
)
class ChannelViewSet(viewsets.ViewSet):
    """
    ViewSet for channel operations.

    list:
        Channels where the current user is admin or member.

    create:
        Create a channel; the current user becomes its admin.

    retrieve:
        Channel details with admin and members.

    messages:
        GET lists the channel's messages oldest first; POST appends one.

    rename:
        Rename the channel (admin only).

    promote:
        Hand the admin role to a member (admin only).

    members:
        POST adds, DELETE removes the user with the given email.

    photo:
        Replace the channel photo (admin only, multipart field ``photo``).
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def list(self, request):
        result = ChannelService.list_channels_for_actor(request.user)
        return Response(ChannelSerializer(result.data, many=True).data)

    def create(self, request):
        """Create a channel with the requester as admin."""
        serializer = ChannelCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChannelService.create_channel(
            creator=request.user,
            name=serializer.validated_data["name"],
            member_ids=serializer.validated_data["members"],
        )
        if not result.success:
            return failure_response(result)

        return Response(ChannelSerializer(result.data).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        result = ChannelService.get_channel(pk)
        if not result.success:
            return failure_response(result)
        return Response(ChannelSerializer(result.data).data)

    @extend_schema(
        methods=["GET"],
        operation_id="list_channel_messages",
        summary="List channel messages",
        responses={200: MessageSerializer(many=True), 404: ERROR_RESPONSES[404]},
        tags=["Chat - Channels"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="send_channel_message",
        summary="Send channel message",
        request=SendChannelMessageSerializer,
        responses={201: MessageSerializer, **ERROR_RESPONSES},
        tags=["Chat - Channels"],
    )
    @action(detail=True, methods=["get", "post"])
    def messages(self, request, pk=None):
        """List or post channel messages."""
        if request.method == "GET":
            result = ChannelService.get_channel_messages(pk)
            if not result.success:
                return failure_response(result)
            return Response(MessageSerializer(result.data, many=True).data)

        serializer = SendChannelMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.send_channel_message(
            sender=request.user,
            channel_id=pk,
            content=serializer.validated_data["content"],
            file_url=serializer.validated_data["file_url"],
        )
        if not result.success:
            return failure_response(result)

        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="rename_channel",
        summary="Rename channel",
        request=ChannelRenameSerializer,
        responses={
            200: ChannelSerializer,
            409: OpenApiResponse(description="Admin changed concurrently"),
            **ERROR_RESPONSES,
        },
        tags=["Chat - Channels"],
    )
    @action(detail=True, methods=["patch"], url_path="name")
    def rename(self, request, pk=None):
        serializer = ChannelRenameSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChannelService.rename_channel(
            actor=request.user,
            channel_id=pk,
            new_name=serializer.validated_data["name"],
        )
        if not result.success:
            return failure_response(result)

        return Response(ChannelSerializer(result.data).data)

    @extend_schema(
        operation_id="promote_channel_member",
        summary="Transfer channel admin",
        description=(
            "Make a member the channel admin. Pass expected_version to fail "
            "with 409 if the channel changed since it was read."
        ),
        request=PromoteMemberSerializer,
        responses={
            200: ChannelSerializer,
            409: OpenApiResponse(description="Another transfer won the race"),
            **ERROR_RESPONSES,
        },
        tags=["Chat - Channels"],
    )
    @action(detail=True, methods=["post"])
    def promote(self, request, pk=None):
        serializer = PromoteMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChannelService.promote_member(
            actor=request.user,
            channel_id=pk,
            target_user_id=serializer.validated_data["user_id"],
            expected_version=serializer.validated_data.get("expected_version"),
        )
        if not result.success:
            return failure_response(result)

        return Response(ChannelSerializer(result.data).data)

    @extend_schema(
        methods=["POST"],
        operation_id="add_channel_member",
        summary="Add channel member",
        request=MemberEmailSerializer,
        responses={200: ChannelSerializer, **ERROR_RESPONSES},
        tags=["Chat - Channels"],
    )
    @extend_schema(
        methods=["DELETE"],
        operation_id="remove_channel_member",
        summary="Remove channel member",
        request=MemberEmailSerializer,
        responses={200: ChannelSerializer, **ERROR_RESPONSES},
        tags=["Chat - Channels"],
    )
    @action(detail=True, methods=["post", "delete"])
    def members(self, request, pk=None):
        """Add (POST) or remove (DELETE) a member by email."""
        serializer = MemberEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        if request.method == "POST":
            result = ChannelService.add_member(request.user, pk, email)
        else:
            result = ChannelService.remove_member(request.user, pk, email)

        if not result.success:
            return failure_response(result)

        return Response(ChannelSerializer(result.data).data)

    @extend_schema(
        operation_id="set_channel_photo",
        summary="Set channel photo",
        description="JPEG, PNG or GIF up to 5 MiB. Replaces (and deletes) the previous photo.",
        request={"multipart/form-data": ChannelPhotoSerializer},
        responses={
            200: OpenApiResponse(description="Updated channel and photo URL"),
            **ERROR_RESPONSES,
        },
        tags=["Chat - Channels"],
    )
    @action(detail=True, methods=["post"], parser_classes=[MultiPartParser, FormParser])
    def photo(self, request, pk=None):
        serializer = ChannelPhotoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChannelService.set_channel_photo(
            actor=request.user,
            channel_id=pk,
            upload=serializer.validated_data.get("photo"),
        )
        if not result.success:
            return failure_response(result)

        return Response(
            {
                "channel": ChannelSerializer(result.data.channel).data,
                "photo_url": result.data.photo_url,
            }
        )


@extend_schema_view(
    partial_update=extend_schema(
        operation_id="edit_message",
        summary="Edit message",
        description="Sender or staff only. Marks the message as edited.",
        request=MessageEditSerializer,
        responses={200: MessageSerializer, **ERROR_RESPONSES},
        tags=["Chat - Messages"],
    ),
    destroy=extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        description="Sender only. Soft delete; deleting twice succeeds.",
        responses={204: None, 403: ERROR_RESPONSES[403], 404: ERROR_RESPONSES[404]},
        tags=["Chat - Messages"],
    ),
)
class MessageViewSet(viewsets.ViewSet):
    """
    ViewSet for message operations.

    conversation:
        Direct messages between the current user and another user.

    direct:
        Send a direct message.

    upload:
        Store an attachment; send its file_url in a following message.

    partial_update:
        Edit a message's content.

    destroy:
        Soft delete a message.

    pin:
        Pin a message (staff only).
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def partial_update(self, request, pk=None):
        serializer = MessageEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.edit_message(
            actor=request.user,
            message_id=pk,
            new_content=serializer.validated_data["content"],
        )
        if not result.success:
            return failure_response(result)

        return Response(MessageSerializer(result.data).data)

    def destroy(self, request, pk=None):
        result = MessageService.soft_delete_message(request.user, pk)
        if not result.success:
            return failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="pin_message",
        summary="Pin message",
        responses={200: MessageSerializer, **ERROR_RESPONSES},
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["post"])
    def pin(self, request, pk=None):
        result = MessageService.pin_message(request.user, pk)
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data).data)

    @extend_schema(
        operation_id="get_conversation",
        summary="Get direct conversation",
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    @action(
        detail=False,
        methods=["get"],
        url_path=r"conversation/(?P<user_id>\d+)",
    )
    def conversation(self, request, user_id=None):
        result = MessageService.get_conversation(request.user.pk, int(user_id))
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data, many=True).data)

    @extend_schema(
        operation_id="send_direct_message",
        summary="Send direct message",
        request=SendDirectMessageSerializer,
        responses={201: MessageSerializer, **ERROR_RESPONSES},
        tags=["Chat - Messages"],
    )
    @action(detail=False, methods=["post"])
    def direct(self, request):
        serializer = SendDirectMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.send_direct_message(
            sender=request.user,
            recipient_id=serializer.validated_data["recipient"],
            content=serializer.validated_data["content"],
            file_url=serializer.validated_data["file_url"],
        )
        if not result.success:
            return failure_response(result)

        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="upload_attachment",
        summary="Upload attachment",
        request={"multipart/form-data": AttachmentUploadSerializer},
        responses={201: AttachmentSerializer, 404: OpenApiResponse(description="No file")},
        tags=["Chat - Messages"],
    )
    @action(detail=False, methods=["post"], parser_classes=[MultiPartParser, FormParser])
    def upload(self, request):
        serializer = AttachmentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.upload_attachment(serializer.validated_data.get("file"))
        if not result.success:
            return failure_response(result)

        artifact = result.data
        output = AttachmentSerializer(
            {
                "file_url": artifact.path,
                "public_url": get_media_store().url(artifact.path),
                "size": artifact.size,
            }
        )
        return Response(output.data, status=status.HTTP_201_CREATED)