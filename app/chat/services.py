"""
Chat services.

This module provides ChatService, the business logic for direct and group
chats: finding or creating the direct chat for a pair of users, creating
groups, appending messages, and the admin-only group mutations.

Every operation:
    - Takes the acting user and one request from chat.commands
    - Validates input and permissions before any side effect
    - Returns ServiceResult[Chat] with the chat loaded via resolved()
    - Publishes live events through chat.events after commit

Failure codes (chat.constants.ErrorCode):
    VALIDATION_ERROR, PAYLOAD_TOO_LARGE, NOT_FOUND, FORBIDDEN,
    DUPLICATE_GROUP, ALREADY_MEMBER, NOT_MEMBER

Object storage failures raise core.exceptions.ExternalServiceError. Any
image uploaded by a failing operation is deleted again.

Concurrency:
    Group mutations lock the chat row (select_for_update) for their
    read-modify-write. Messages are INSERTs, so concurrent appends to the
    same chat never lose each other. Direct chat creation relies on the
    DirectChatPair unique constraint and re-reads the winner on conflict.

Usage:
    from chat.commands import AddMember
    from chat.services import ChatService

    result = ChatService.add_member(request.user, AddMember(group_id=4, user_id=9))
    if not result.success:
        return Response(result.to_response(), status=400)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.utils import timezone

from authentication.models import User
from chat import events, fanout
from chat.constants import GROUP_CONFIG, MESSAGE_CONFIG, ErrorCode
from chat.models import Chat, ChatMember, DirectChatPair, Message
from core.services import BaseService, ServiceResult
from media.storage import (
    exceeds_image_limit,
    get_object_storage,
    replace_object,
    staged_upload,
)

if TYPE_CHECKING:
    from django.core.files import File

    from chat.commands import (
        AddMember,
        AppendGroupMessage,
        CreateGroup,
        EditGroup,
        LeaveGroup,
        RemoveGroupPhoto,
        RemoveMember,
        SendDirectMessage,
    )
    from media.storage import ObjectStorage, StoredObject


class ChatService(BaseService):
    """
    Service for chat lookup, creation and mutation.

    Methods:
        send_direct_message: Message a user, creating the direct chat once
        create_group: New group with the actor as admin
        append_group_message: Message a group
        add_member / remove_member: Admin-only membership changes
        edit_group / remove_group_photo: Admin-only name and photo changes
        leave_group: Leave, passing admin on if needed
        list_chats: The user's chats, most recently updated first
    """

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _resolved(chat_id: int) -> Chat:
        return Chat.objects.resolved().get(pk=chat_id)

    @staticmethod
    def _locked_group(group_id: int) -> Chat | None:
        """Group row locked for the rest of the transaction."""
        return Chat.objects.select_for_update().filter(
            pk=group_id, is_group_chat=True
        ).first()

    @staticmethod
    def _touch(chat_id: int) -> None:
        """Move the chat to the top of its members' lists."""
        Chat.objects.filter(pk=chat_id).update(updated_at=timezone.now())

    @staticmethod
    def _check_message(text: str, image: File | None) -> ServiceResult | None:
        if not text and image is None:
            return ServiceResult.failure(
                "Write a message or provide an image.",
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        if image is not None and exceeds_image_limit(image):
            return ServiceResult.failure(
                "Image size must be less than 1mb.",
                error_code=ErrorCode.PAYLOAD_TOO_LARGE,
            )
        return None

    @staticmethod
    def _group_not_found() -> ServiceResult:
        return ServiceResult.failure(
            "Group not found.", error_code=ErrorCode.NOT_FOUND
        )

    @staticmethod
    def _user_not_found() -> ServiceResult:
        return ServiceResult.failure(
            "User not found.", error_code=ErrorCode.NOT_FOUND
        )

    @staticmethod
    def _upload(storage: ObjectStorage, file: File | None, folder: str):
        if file is None:
            return None
        return storage.upload(file, folder)

    @classmethod
    def _append(
        cls,
        chat_id: int,
        sender: User,
        text: str,
        stored: StoredObject | None,
    ) -> Message:
        message = Message.objects.create(
            chat_id=chat_id,
            sender=sender,
            text=text,
            image=stored.url if stored else "",
            image_public_id=stored.public_id if stored else "",
        )
        cls._touch(chat_id)
        return message

    # =========================================================================
    # Direct chats
    # =========================================================================

    @classmethod
    def get_or_create_direct_chat(cls, user: User, other: User) -> tuple[Chat, bool]:
        """
        The single direct chat between two users, created on first use.

        Returns:
            (chat, created). Members of a new chat are [user, other].
        """
        lower, higher = DirectChatPair.canonical(user.id, other.id)
        pair = (
            DirectChatPair.objects.select_related("chat")
            .filter(user_lower_id=lower, user_higher_id=higher)
            .first()
        )
        if pair is not None:
            return pair.chat, False

        try:
            with transaction.atomic():
                chat = Chat.objects.create(is_group_chat=False)
                ChatMember.objects.create(chat=chat, user=user)
                ChatMember.objects.create(chat=chat, user=other)
                DirectChatPair.objects.create(
                    chat=chat, user_lower_id=lower, user_higher_id=higher
                )
        except IntegrityError:
            # A concurrent first message created it
            pair = DirectChatPair.objects.select_related("chat").get(
                user_lower_id=lower, user_higher_id=higher
            )
            return pair.chat, False

        cls.get_logger().info(
            f"Created direct chat {chat.id} between users {user.id} and {other.id}"
        )
        return chat, True

    @classmethod
    def send_direct_message(
        cls, actor: User, request: SendDirectMessage
    ) -> ServiceResult[Chat]:
        """
        Append a message to the actor's direct chat with the recipient.

        Fails with VALIDATION_ERROR if the recipient is missing, unknown or
        the actor, or if neither text nor image is given; PAYLOAD_TOO_LARGE
        if the image exceeds the limit. Recipient gets MESSAGE_RECEIVED.
        """
        with staged_upload(request.image) as image:
            text = (request.text or "").strip()

            if request.recipient_id is None:
                return ServiceResult.failure(
                    "User not found.", error_code=ErrorCode.VALIDATION_ERROR
                )
            if request.recipient_id == actor.id:
                return ServiceResult.failure(
                    "Message cannot be sent to yourself.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )
            recipient = User.objects.filter(
                pk=request.recipient_id, is_active=True
            ).first()
            if recipient is None:
                return ServiceResult.failure(
                    "User not found.", error_code=ErrorCode.VALIDATION_ERROR
                )
            invalid = cls._check_message(text, image)
            if invalid is not None:
                return invalid

            storage = get_object_storage()
            stored = cls._upload(storage, image, MESSAGE_CONFIG.IMAGE_FOLDER)
            try:
                with cls.atomic():
                    chat, _ = cls.get_or_create_direct_chat(actor, recipient)
                    cls._append(chat.id, actor, text, stored)
                    chat = cls._resolved(chat.id)
                    events.publish(chat.id, fanout.message_received(chat, actor.id))
            except Exception:
                if stored:
                    storage.discard(stored.public_id)
                raise

        cls.get_logger().info(
            f"User {actor.id} sent a direct message to user {recipient.id} in chat {chat.id}"
        )
        return ServiceResult.success(chat)

    # =========================================================================
    # Group chats
    # =========================================================================

    @classmethod
    def create_group(cls, actor: User, request: CreateGroup) -> ServiceResult[Chat]:
        """
        Create a group of the listed users plus the actor, who becomes admin.

        Members are stored as member_ids (first occurrence order, duplicates
        dropped) followed by the actor. Fails with DUPLICATE_GROUP if a group
        with exactly that member set exists. Members get GROUP_CREATED.
        """
        with staged_upload(request.photo) as photo:
            member_ids = list(dict.fromkeys(request.member_ids))
            name = (request.group_name or "").strip()

            if len(member_ids) < GROUP_CONFIG.MIN_OTHER_MEMBERS:
                return ServiceResult.failure(
                    "Please add atleast two other participants.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )
            if not name:
                return ServiceResult.failure(
                    "Please choose a group name.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )
            if len(name) > GROUP_CONFIG.NAME_MAX_LENGTH:
                return ServiceResult.failure(
                    "Group name must be 50 characters or less.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )
            if actor.id in member_ids:
                return ServiceResult.failure(
                    "You are already in the group.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )
            found = User.objects.filter(pk__in=member_ids, is_active=True).count()
            if found != len(member_ids):
                return ServiceResult.failure(
                    "User/s not found.", error_code=ErrorCode.NOT_FOUND
                )

            all_ids = member_ids + [actor.id]
            if Chat.objects.groups().with_exact_members(all_ids).exists():
                return cls._duplicate_group()
            if photo is not None and exceeds_image_limit(photo):
                return ServiceResult.failure(
                    "Image size must be less than 1mb.",
                    error_code=ErrorCode.PAYLOAD_TOO_LARGE,
                )

            storage = get_object_storage()
            stored = cls._upload(storage, photo, GROUP_CONFIG.PHOTO_FOLDER)
            duplicate = None
            try:
                with cls.atomic():
                    # Creates sharing a member queue on that member's user row
                    list(
                        User.objects.select_for_update()
                        .filter(pk__in=all_ids)
                        .order_by("pk")
                    )
                    if Chat.objects.groups().with_exact_members(all_ids).exists():
                        duplicate = cls._duplicate_group()
                    else:
                        chat = cls._create_group_rows(actor, name, stored, all_ids)
                        events.publish(chat.id, fanout.group_created(chat))
            except Exception:
                if stored:
                    storage.discard(stored.public_id)
                raise

            if duplicate is not None:
                if stored:
                    storage.discard(stored.public_id)
                return duplicate

        cls.get_logger().info(
            f"User {actor.id} created group {chat.id} with members {all_ids}"
        )
        return ServiceResult.success(chat)

    @classmethod
    def _create_group_rows(cls, actor, name, stored, all_ids) -> Chat:
        chat = Chat.objects.create(
            is_group_chat=True,
            group_name=name,
            group_photo=stored.url if stored else GROUP_CONFIG.DEFAULT_PHOTO,
            group_photo_public_id=stored.public_id if stored else "",
            group_admin=actor,
        )
        for user_id in all_ids:
            ChatMember.objects.create(chat=chat, user_id=user_id)
        return cls._resolved(chat.id)

    @staticmethod
    def _duplicate_group() -> ServiceResult:
        return ServiceResult.failure(
            "A group with these participants already exist.",
            error_code=ErrorCode.DUPLICATE_GROUP,
        )

    @classmethod
    def append_group_message(
        cls, actor: User, request: AppendGroupMessage
    ) -> ServiceResult[Chat]:
        """
        Append a message to a group the actor belongs to.

        Fails with NOT_FOUND if the group is absent and FORBIDDEN if the
        actor is not a member. Other members get MESSAGE_RECEIVED.
        """
        with staged_upload(request.image) as image:
            text = (request.text or "").strip()

            invalid = cls._check_message(text, image)
            if invalid is not None:
                return invalid
            chat = Chat.objects.groups().filter(pk=request.group_id).first()
            if chat is None:
                return cls._group_not_found()
            if not ChatMember.objects.filter(chat=chat, user=actor).exists():
                return ServiceResult.failure(
                    "Only group participants can send messages.",
                    error_code=ErrorCode.FORBIDDEN,
                )

            storage = get_object_storage()
            stored = cls._upload(storage, image, MESSAGE_CONFIG.IMAGE_FOLDER)
            try:
                with cls.atomic():
                    cls._append(chat.id, actor, text, stored)
                    chat = cls._resolved(chat.id)
                    events.publish(chat.id, fanout.message_received(chat, actor.id))
            except Exception:
                if stored:
                    storage.discard(stored.public_id)
                raise

        cls.get_logger().debug(f"User {actor.id} sent a message to group {chat.id}")
        return ServiceResult.success(chat)

    @classmethod
    def add_member(cls, actor: User, request: AddMember) -> ServiceResult[Chat]:
        """
        Add a user to a group (admin only).

        The added user gets ADDED_TO_GROUP; other non-admin members get
        OTHER_USER_ADDED.
        """
        with cls.atomic():
            chat = cls._locked_group(request.group_id)
            if chat is None:
                return cls._group_not_found()
            if not chat.is_admin(actor):
                return ServiceResult.failure(
                    "Only group admin can add participants.",
                    error_code=ErrorCode.FORBIDDEN,
                )
            user = User.objects.filter(pk=request.user_id, is_active=True).first()
            if user is None:
                return cls._user_not_found()
            if ChatMember.objects.filter(chat=chat, user=user).exists():
                return ServiceResult.failure(
                    "Participant is already in the group.",
                    error_code=ErrorCode.ALREADY_MEMBER,
                )

            ChatMember.objects.create(chat=chat, user=user)
            cls._touch(chat.id)
            chat = cls._resolved(chat.id)
            events.publish(chat.id, fanout.member_added(chat, user.id))

        cls.get_logger().info(f"User {actor.id} added user {user.id} to group {chat.id}")
        return ServiceResult.success(chat)

    @classmethod
    def remove_member(cls, actor: User, request: RemoveMember) -> ServiceResult[Chat]:
        """
        Remove a member from a group (admin only).

        The admin cannot remove themself; leaving is a separate operation
        that also hands admin over. The removed user gets
        REMOVED_FROM_GROUP; other non-admin members get OTHER_USER_REMOVED.
        """
        with cls.atomic():
            chat = cls._locked_group(request.group_id)
            if chat is None:
                return cls._group_not_found()
            if not chat.is_admin(actor):
                return ServiceResult.failure(
                    "Only group admin can remove participants.",
                    error_code=ErrorCode.FORBIDDEN,
                )
            if request.user_id == actor.id:
                return ServiceResult.failure(
                    "Group admin cannot remove themselves. Leave the group instead.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )
            if not User.objects.filter(pk=request.user_id).exists():
                return cls._user_not_found()
            deleted, _ = ChatMember.objects.filter(
                chat=chat, user_id=request.user_id
            ).delete()
            if not deleted:
                return ServiceResult.failure(
                    "Participant is not in the group.",
                    error_code=ErrorCode.NOT_MEMBER,
                )

            cls._touch(chat.id)
            chat = cls._resolved(chat.id)
            events.publish(chat.id, fanout.member_removed(chat, request.user_id))

        cls.get_logger().info(
            f"User {actor.id} removed user {request.user_id} from group {chat.id}"
        )
        return ServiceResult.success(chat)

    @classmethod
    def _edit_forbidden(cls, chat: Chat | None, actor: User) -> ServiceResult | None:
        if chat is None:
            return cls._group_not_found()
        if not chat.is_admin(actor):
            return ServiceResult.failure(
                "Only group admin can edit group details.",
                error_code=ErrorCode.FORBIDDEN,
            )
        return None

    @classmethod
    def edit_group(cls, actor: User, request: EditGroup) -> ServiceResult[Chat]:
        """
        Rename a group and/or replace its photo (admin only).

        A new photo is uploaded before the group row is locked, so slow
        storage never blocks other writers. Under the lock the group is
        saved and the previous uploaded photo deleted last (see
        media.storage.replace_object). If that delete fails the group is
        left unchanged, the new photo is removed and ExternalServiceError
        propagates. Members get GROUP_EDITED.
        """
        with staged_upload(request.photo) as photo:
            name = request.group_name
            if name is not None:
                name = name.strip()
                if not name or len(name) > GROUP_CONFIG.NAME_MAX_LENGTH:
                    return ServiceResult.failure(
                        "Group name must be between 1 and 50 characters.",
                        error_code=ErrorCode.VALIDATION_ERROR,
                    )
            if name is None and photo is None:
                return ServiceResult.failure(
                    "Provide a new group name or photo.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )
            if photo is not None and exceeds_image_limit(photo):
                return ServiceResult.failure(
                    "Image size must be less than 1mb.",
                    error_code=ErrorCode.PAYLOAD_TOO_LARGE,
                )

            forbidden = cls._edit_forbidden(
                Chat.objects.groups().filter(pk=request.group_id).first(), actor
            )
            if forbidden is not None:
                return forbidden

            storage = get_object_storage()
            stored = cls._upload(storage, photo, GROUP_CONFIG.PHOTO_FOLDER)
            try:
                with cls.atomic():
                    chat = cls._locked_group(request.group_id)
                    # Admin may have changed while the photo was uploading
                    forbidden = cls._edit_forbidden(chat, actor)
                    if forbidden is None:
                        chat = cls._save_group_edit(chat, name, storage, stored)
                        events.publish(chat.id, fanout.group_edited(chat))
            except Exception:
                if stored:
                    storage.discard(stored.public_id)
                raise

            if forbidden is not None:
                if stored:
                    storage.discard(stored.public_id)
                return forbidden

        cls.get_logger().info(f"User {actor.id} edited group {chat.id}")
        return ServiceResult.success(chat)

    @classmethod
    def _save_group_edit(
        cls,
        chat: Chat,
        name: str | None,
        storage: ObjectStorage,
        stored: StoredObject | None,
    ) -> Chat:
        """Save a locked group's new name/photo and return it resolved."""
        update_fields = ["updated_at"]
        if name is not None:
            chat.group_name = name
            update_fields.append("group_name")

        if stored is None:
            chat.save(update_fields=update_fields)
            return cls._resolved(chat.id)

        def persist(new_photo: StoredObject) -> Chat:
            chat.group_photo = new_photo.url
            chat.group_photo_public_id = new_photo.public_id
            chat.save(
                update_fields=update_fields + ["group_photo", "group_photo_public_id"]
            )
            return cls._resolved(chat.id)

        return replace_object(storage, stored, chat.group_photo_public_id, persist)

    @classmethod
    def remove_group_photo(
        cls, actor: User, request: RemoveGroupPhoto
    ) -> ServiceResult[Chat]:
        """
        Reset a group's photo to the placeholder (admin only).

        The stored photo is deleted first; if that fails the group keeps
        its photo and ExternalServiceError propagates. Members get
        GROUP_PHOTO_REMOVED.
        """
        with cls.atomic():
            chat = cls._locked_group(request.group_id)
            if chat is None:
                return cls._group_not_found()
            if not chat.is_admin(actor):
                return ServiceResult.failure(
                    "Only group admin can remove photo.",
                    error_code=ErrorCode.FORBIDDEN,
                )
            if request.photo_ref and request.photo_ref != chat.group_photo_public_id:
                return ServiceResult.failure(
                    "This photo is not the group's current photo.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )

            if chat.group_photo_public_id:
                get_object_storage().delete(chat.group_photo_public_id)

            chat.group_photo = GROUP_CONFIG.DEFAULT_PHOTO
            chat.group_photo_public_id = ""
            chat.save(
                update_fields=["group_photo", "group_photo_public_id", "updated_at"]
            )
            chat = cls._resolved(chat.id)
            events.publish(chat.id, fanout.group_photo_removed(chat))

        cls.get_logger().info(f"User {actor.id} removed the photo of group {chat.id}")
        return ServiceResult.success(chat)

    @classmethod
    def leave_group(cls, actor: User, request: LeaveGroup) -> ServiceResult[Chat]:
        """
        Leave a group.

        When the admin leaves, the earliest-joined remaining member becomes
        admin. When the last member leaves, the group is kept with no
        members and no admin. Remaining members except the admin get
        USER_LEFT.
        """
        with cls.atomic():
            chat = cls._locked_group(request.group_id)
            if chat is None:
                return cls._group_not_found()
            deleted, _ = ChatMember.objects.filter(chat=chat, user=actor).delete()
            if not deleted:
                return ServiceResult.failure(
                    "You are not in this group.", error_code=ErrorCode.NOT_MEMBER
                )

            if chat.group_admin_id == actor.id:
                successor = ChatMember.objects.filter(chat=chat).order_by("id").first()
                chat.group_admin_id = successor.user_id if successor else None
                chat.save(update_fields=["group_admin", "updated_at"])
                if successor:
                    cls.get_logger().info(
                        f"User {successor.user_id} is now admin of group {chat.id}"
                    )
                else:
                    cls.get_logger().info(f"Group {chat.id} has no members left")
            else:
                cls._touch(chat.id)

            chat = cls._resolved(chat.id)
            events.publish(chat.id, fanout.user_left(chat))

        cls.get_logger().info(f"User {actor.id} left group {chat.id}")
        return ServiceResult.success(chat)

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def list_chats(user: User) -> ServiceResult[list[Chat]]:
        """All of the user's chats, resolved, most recently updated first."""
        chats = Chat.objects.for_user(user).resolved().order_by("-updated_at", "-id")
        return ServiceResult.success(list(chats))
