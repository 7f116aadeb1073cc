"""
API views for chats.

URL Structure (prefixed with /api/v1/chats/):
    /                           GET list chats, POST send direct message
    /group/                     POST create group, PUT edit group
    /group/newMessage/          PUT send group message
    /group/addUser/             PUT add member
    /group/removeUser/          PUT remove member
    /group/removephoto/         PUT reset group photo
    /group/leavegroup/{id}/     PUT leave group

Design Decisions:
    - Views validate shape with serializers, build a chat.commands request
      and call ChatService; all rules live in the service
    - Every success returns the resolved chat (ChatSerializer)
    - Failures return {"error", "error_code"} with HTTP 400
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat import commands
from chat.serializers import (
    ChatSerializer,
    CreateGroupSerializer,
    DirectMessageSerializer,
    EditGroupSerializer,
    GroupMemberSerializer,
    GroupMessageSerializer,
    RemoveGroupPhotoSerializer,
)
from chat.services import ChatService


def _chat_response(result, success_status=status.HTTP_200_OK):
    if not result.success:
        return Response(result.to_response(), status=status.HTTP_400_BAD_REQUEST)
    return Response(ChatSerializer(result.data).data, status=success_status)


def _validated(serializer_class, request):
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class ChatListView(APIView):
    """
    GET: The user's chats, most recently updated first
    POST: Send a direct message (creates the chat on first message)
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List chats",
        tags=["Chats"],
        responses={200: ChatSerializer(many=True)},
    )
    def get(self, request):
        result = ChatService.list_chats(request.user)
        return Response(ChatSerializer(result.data, many=True).data)

    @extend_schema(
        summary="Send direct message",
        tags=["Chats"],
        request=DirectMessageSerializer,
        responses={200: ChatSerializer},
    )
    def post(self, request):
        """
        Request body (JSON or multipart):
            {"userId": 7, "text": "hi", "image": <file>}
        """
        data = _validated(DirectMessageSerializer, request)
        result = ChatService.send_direct_message(
            request.user,
            commands.SendDirectMessage(
                recipient_id=data.get("userId"),
                text=data["text"],
                image=data.get("image"),
            ),
        )
        return _chat_response(result)


class GroupView(APIView):
    """
    POST: Create a group
    PUT: Rename a group and/or replace its photo (admin only)
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Create group",
        tags=["Groups"],
        request=CreateGroupSerializer,
        responses={201: ChatSerializer},
    )
    def post(self, request):
        """
        Request body (JSON or multipart):
            {"userIds": "3,7", "groupName": "Team", "groupPhoto": <file>}
        """
        data = _validated(CreateGroupSerializer, request)
        result = ChatService.create_group(
            request.user,
            commands.CreateGroup(
                member_ids=data["userIds"],
                group_name=data["groupName"],
                photo=data.get("groupPhoto"),
            ),
        )
        return _chat_response(result, success_status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Edit group",
        tags=["Groups"],
        request=EditGroupSerializer,
        responses={200: ChatSerializer},
    )
    def put(self, request):
        """
        Request body (JSON or multipart):
            {"id": 4, "name": "New name", "photo": <file>}
        """
        data = _validated(EditGroupSerializer, request)
        result = ChatService.edit_group(
            request.user,
            commands.EditGroup(
                group_id=data["id"],
                group_name=data.get("name"),
                photo=data.get("photo"),
            ),
        )
        return _chat_response(result)


class GroupMessageView(APIView):
    """PUT: Send a message to a group."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Send group message",
        tags=["Groups"],
        request=GroupMessageSerializer,
        responses={200: ChatSerializer},
    )
    def put(self, request):
        data = _validated(GroupMessageSerializer, request)
        result = ChatService.append_group_message(
            request.user,
            commands.AppendGroupMessage(
                group_id=data["groupId"],
                text=data["text"],
                image=data.get("image"),
            ),
        )
        return _chat_response(result)


class AddMemberView(APIView):
    """PUT: Add a user to a group (admin only)."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Add group member",
        tags=["Groups"],
        request=GroupMemberSerializer,
        responses={200: ChatSerializer},
    )
    def put(self, request):
        data = _validated(GroupMemberSerializer, request)
        result = ChatService.add_member(
            request.user,
            commands.AddMember(group_id=data["groupId"], user_id=data["userId"]),
        )
        return _chat_response(result)


class RemoveMemberView(APIView):
    """PUT: Remove a user from a group (admin only)."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Remove group member",
        tags=["Groups"],
        request=GroupMemberSerializer,
        responses={200: ChatSerializer},
    )
    def put(self, request):
        data = _validated(GroupMemberSerializer, request)
        result = ChatService.remove_member(
            request.user,
            commands.RemoveMember(group_id=data["groupId"], user_id=data["userId"]),
        )
        return _chat_response(result)


class RemoveGroupPhotoView(APIView):
    """PUT: Reset a group's photo to the placeholder (admin only)."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Remove group photo",
        tags=["Groups"],
        request=RemoveGroupPhotoSerializer,
        responses={200: ChatSerializer},
    )
    def put(self, request):
        data = _validated(RemoveGroupPhotoSerializer, request)
        result = ChatService.remove_group_photo(
            request.user,
            commands.RemoveGroupPhoto(
                group_id=data["id"], photo_ref=data["photoPublicId"]
            ),
        )
        return _chat_response(result)


class LeaveGroupView(APIView):
    """PUT: Leave a group."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Leave group",
        tags=["Groups"],
        request=None,
        responses={200: ChatSerializer},
    )
    def put(self, request, pk):
        result = ChatService.leave_group(request.user, commands.LeaveGroup(group_id=pk))
        return _chat_response(result)
