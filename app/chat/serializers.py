"""
Serializers for the chat API.

Response serializers render a resolved chat (see ChatQuerySet.resolved):
members, admin and message senders as profile summaries
{id, name, profile_picture}.

Request serializers only check shape; business rules live in ChatService.
Field names follow the client wire format (userId, groupId, ...).
"""

from __future__ import annotations

import json

from django.core.validators import FileExtensionValidator
from rest_framework import serializers

from authentication.models import User
from chat.constants import MESSAGE_CONFIG
from chat.models import Chat, Message

IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "webp"]


def _image_field(**kwargs):
    return serializers.FileField(
        required=False,
        allow_null=True,
        validators=[FileExtensionValidator(allowed_extensions=IMAGE_EXTENSIONS)],
        **kwargs,
    )


# =============================================================================
# Response Serializers
# =============================================================================


class UserSummarySerializer(serializers.ModelSerializer):
    """Profile summary embedded in chats."""

    class Meta:
        model = User
        fields = ["id", "name", "profile_picture"]
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "sender", "text", "image", "created_at"]
        read_only_fields = fields


class ChatSerializer(serializers.ModelSerializer):
    """
    A chat as clients render it.

    Expects an instance loaded with Chat.objects.resolved(); members are
    listed in join order.
    """

    members = serializers.SerializerMethodField()
    group_admin = UserSummarySerializer(read_only=True)
    messages = MessageSerializer(many=True, read_only=True)

    class Meta:
        model = Chat
        fields = [
            "id",
            "is_group_chat",
            "group_name",
            "group_photo",
            "group_photo_public_id",
            "group_admin",
            "members",
            "messages",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_members(self, obj) -> list[dict]:
        return UserSummarySerializer(obj.member_list(), many=True).data


# =============================================================================
# Request Serializers
# =============================================================================


class UserIdListField(serializers.ListField):
    """
    List of user ids.

    Accepts a JSON list, a JSON-encoded list, or a comma-separated string
    ("3,7,9") as sent by multipart forms.
    """

    child = serializers.IntegerField(min_value=1)

    def get_value(self, dictionary):
        # Multipart forms send one comma-separated value, not repeated keys
        if hasattr(dictionary, "getlist") and self.field_name in dictionary:
            values = dictionary.getlist(self.field_name)
            if len(values) == 1:
                return values[0]
            return values
        return super().get_value(dictionary)

    def to_internal_value(self, data):
        if isinstance(data, str):
            text = data.strip()
            if text.startswith("["):
                try:
                    data = json.loads(text)
                except ValueError:
                    self.fail("not_a_list", input_type="str")
            else:
                data = [item.strip() for item in text.split(",") if item.strip()]
        return super().to_internal_value(data)


class DirectMessageSerializer(serializers.Serializer):
    userId = serializers.IntegerField(required=False, allow_null=True)
    text = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=MESSAGE_CONFIG.MAX_TEXT_LENGTH,
    )
    image = _image_field()


class CreateGroupSerializer(serializers.Serializer):
    userIds = UserIdListField(required=False, default=list)
    # Blank and length checks happen in ChatService
    groupName = serializers.CharField(required=False, allow_blank=True, default="")
    groupPhoto = _image_field()


class GroupMessageSerializer(serializers.Serializer):
    groupId = serializers.IntegerField()
    text = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=MESSAGE_CONFIG.MAX_TEXT_LENGTH,
    )
    image = _image_field()


class GroupMemberSerializer(serializers.Serializer):
    """Add or remove one member."""

    groupId = serializers.IntegerField()
    userId = serializers.IntegerField()


class EditGroupSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    # Length and blankness are checked by ChatService
    name = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    photo = _image_field()


class RemoveGroupPhotoSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    photoPublicId = serializers.CharField(required=False, allow_blank=True, default="")
