"""
Request types for ChatService operations.

Each operation takes one explicit, typed request instead of a loose dict.
Views build these from validated serializer data; the WebSocket consumer
and tests can build them directly.

Usage:
    from chat.commands import SendDirectMessage

    result = ChatService.send_direct_message(
        request.user,
        SendDirectMessage(recipient_id=7, text="hi"),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.core.files import File


@dataclass(frozen=True)
class SendDirectMessage:
    recipient_id: int | None
    text: str = ""
    image: File | None = None


@dataclass(frozen=True)
class CreateGroup:
    member_ids: list[int] = field(default_factory=list)
    group_name: str = ""
    photo: File | None = None


@dataclass(frozen=True)
class AppendGroupMessage:
    group_id: int
    text: str = ""
    image: File | None = None


@dataclass(frozen=True)
class AddMember:
    group_id: int
    user_id: int


@dataclass(frozen=True)
class RemoveMember:
    group_id: int
    user_id: int


@dataclass(frozen=True)
class EditGroup:
    """Either field may be omitted; None leaves it unchanged."""

    group_id: int
    group_name: str | None = None
    photo: File | None = None


@dataclass(frozen=True)
class RemoveGroupPhoto:
    group_id: int
    # Stored handle the client believes is current; blank means "whatever is stored"
    photo_ref: str = ""


@dataclass(frozen=True)
class LeaveGroup:
    group_id: int
