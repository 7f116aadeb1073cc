"""
Chat system models.

This module defines the data models for the chat system supporting:
- Direct conversations between exactly two users
- Group conversations with a single admin

Models:
    Chat: A direct or group conversation
    ChatMember: Membership of a user in a chat; its id is the join order
    DirectChatPair: Helper for enforcing uniqueness of direct chats
    Message: Individual message within a chat (text, image, or both)

Design Decisions:
    - Messages are rows, not an embedded list: appending is an INSERT, so
      concurrent senders to the same chat never overwrite each other
    - One direct chat per user pair is enforced by DirectChatPair's
      unique constraint, regardless of who sends first
    - Chat.updated_at orders the chat list; appending a message bumps it
    - A group whose last member leaves is kept, with group_admin NULL
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import Count, F, Prefetch, Q

from chat.constants import GROUP_CONFIG
from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


class ChatQuerySet(models.QuerySet):
    """Query helpers shared by ChatService and the views."""

    def resolved(self) -> ChatQuerySet:
        """
        Load everything a chat is rendered with.

        Members come in join order; message senders and the admin are
        fetched in the same pass.
        """
        return self.select_related("group_admin").prefetch_related(
            Prefetch(
                "memberships",
                queryset=ChatMember.objects.select_related("user").order_by("id"),
            ),
            Prefetch(
                "messages",
                queryset=Message.objects.select_related("sender").order_by(
                    "created_at", "id"
                ),
            ),
        )

    def for_user(self, user: User) -> ChatQuerySet:
        """Chats the user is currently a member of."""
        return self.filter(memberships__user=user)

    def groups(self) -> ChatQuerySet:
        return self.filter(is_group_chat=True)

    def with_exact_members(self, user_ids) -> ChatQuerySet:
        """
        Chats whose member set equals user_ids, in any order.

        Both the total member count and the count of members within
        user_ids must equal len(user_ids).
        """
        ids = set(user_ids)
        return self.annotate(
            member_count=Count("memberships", distinct=True),
            matched_count=Count(
                "memberships",
                filter=Q(memberships__user_id__in=ids),
                distinct=True,
            ),
        ).filter(member_count=len(ids), matched_count=len(ids))


class Chat(BaseModel):
    """
    A conversation between users.

    A direct chat has exactly two members and no admin, name or photo.
    A group chat has a name, a photo (placeholder by default) and an admin
    who is one of its members.

    Fields:
        is_group_chat: Direct (False) or group (True)
        group_name: Display name (groups only, 1-50 chars)
        group_photo: Photo URL (groups only)
        group_photo_public_id: Object storage handle of an uploaded photo;
            empty while the placeholder is in use
        group_admin: Member allowed to change the group; NULL for direct
            chats and for a group whose last member has left
        members: Users in the chat (through ChatMember)
    """

    is_group_chat = models.BooleanField(
        default=False,
        db_index=True,
    )

    group_name = models.CharField(
        max_length=GROUP_CONFIG.NAME_MAX_LENGTH,
        blank=True,
        default="",
    )

    group_photo = models.URLField(
        max_length=500,
        blank=True,
        default="",
    )

    group_photo_public_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Object storage handle for deleting the uploaded photo",
    )

    group_admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="administered_chats",
    )

    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="ChatMember",
        related_name="chats",
    )

    objects = ChatQuerySet.as_manager()

    class Meta:
        db_table = "chat_chat"
        ordering = ["-updated_at"]

    def __str__(self) -> str:
        if self.is_group_chat:
            return f"Group {self.id}: {self.group_name}"
        return f"Direct chat {self.id}"

    def member_list(self) -> list[User]:
        """Members in join order (uses the resolved() prefetch when present)."""
        return [membership.user for membership in self.memberships.all()]

    def member_ids(self) -> list[int]:
        return [membership.user_id for membership in self.memberships.all()]

    def is_admin(self, user) -> bool:
        return self.group_admin_id is not None and self.group_admin_id == user.id


class ChatMember(models.Model):
    """
    Membership of a user in a chat.

    The auto-increment id doubles as join order: the first remaining
    membership by id is the one that inherits admin on leave.
    """

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name="memberships",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_memberships",
    )

    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "chat_member"
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["chat", "user"],
                name="unique_chat_member",
            ),
        ]
        indexes = [
            # User's chats
            models.Index(fields=["user", "chat"], name="chat_member_user_idx"),
        ]

    def __str__(self) -> str:
        return f"User {self.user_id} in chat {self.chat_id}"


class DirectChatPair(models.Model):
    """
    Enforces uniqueness of direct chats between two users.

    User pairs are stored in canonical order (lower id first), so the
    unique constraint holds regardless of who sent the first message.

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One chat per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order
    """

    chat = models.OneToOneField(
        Chat,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="direct_pair",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )

    class Meta:
        db_table = "chat_direct_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_direct_chat_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="direct_pair_user_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        return f"DirectPair({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical(user_a_id: int, user_b_id: int) -> tuple[int, int]:
        return (user_a_id, user_b_id) if user_a_id < user_b_id else (user_b_id, user_a_id)


class Message(BaseModel):
    """
    A message in a chat.

    Messages are append-only: never edited or deleted by the chat API.

    Fields:
        chat: Chat the message belongs to
        sender: Author; NULL only if the user row is deleted
        text: Trimmed text, may be empty when an image is attached
        image: Image URL, may be empty when text is present
        image_public_id: Object storage handle of the image
    """

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name="messages",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="sent_messages",
    )

    text = models.TextField(blank=True, default="")

    image = models.URLField(max_length=500, blank=True, default="")

    image_public_id = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["chat", "created_at"], name="chat_msg_chat_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(text="", image=""),
                name="message_has_text_or_image",
            ),
        ]

    def __str__(self) -> str:
        preview = self.text[:30] if self.text else "[image]"
        return f"Message {self.id} in chat {self.chat_id}: {preview}"
