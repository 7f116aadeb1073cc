"""
Event fanout policy.

Given a chat after a mutation and the user who caused it, decide which
members get which live event. Every function here is pure: it reads
member ids and the admin from the chat and returns
[(event_name, [user_id, ...]), ...]. Delivery happens elsewhere
(chat.events, chat.presence).

Rules:
    - new message: every member except the sender
    - group created / edited / photo removed: every member except the admin
    - member added: the added user gets ADDED_TO_GROUP, the other non-admin
      members get OTHER_USER_ADDED
    - member removed: the removed user gets REMOVED_FROM_GROUP, the other
      non-admin members get OTHER_USER_REMOVED
    - member left: remaining members except the (new) admin
    - typing: every member except the typist
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chat.constants import ChatEvent

if TYPE_CHECKING:
    from chat.models import Chat

Fanout = list[tuple[str, list[int]]]


def _members_except(chat: Chat, *excluded) -> list[int]:
    skip = {user_id for user_id in excluded if user_id is not None}
    return [user_id for user_id in chat.member_ids() if user_id not in skip]


def message_received(chat: Chat, sender_id: int) -> Fanout:
    return [(ChatEvent.MESSAGE_RECEIVED, _members_except(chat, sender_id))]


def group_created(chat: Chat) -> Fanout:
    return [(ChatEvent.GROUP_CREATED, _members_except(chat, chat.group_admin_id))]


def group_edited(chat: Chat) -> Fanout:
    return [(ChatEvent.GROUP_EDITED, _members_except(chat, chat.group_admin_id))]


def group_photo_removed(chat: Chat) -> Fanout:
    return [
        (ChatEvent.GROUP_PHOTO_REMOVED, _members_except(chat, chat.group_admin_id))
    ]


def member_added(chat: Chat, added_user_id: int) -> Fanout:
    return [
        (ChatEvent.ADDED_TO_GROUP, [added_user_id]),
        (
            ChatEvent.OTHER_USER_ADDED,
            _members_except(chat, chat.group_admin_id, added_user_id),
        ),
    ]


def member_removed(chat: Chat, removed_user_id: int) -> Fanout:
    """The removed user is no longer in chat.member_ids(), so is targeted explicitly."""
    return [
        (ChatEvent.REMOVED_FROM_GROUP, [removed_user_id]),
        (
            ChatEvent.OTHER_USER_REMOVED,
            _members_except(chat, chat.group_admin_id, removed_user_id),
        ),
    ]


def user_left(chat: Chat) -> Fanout:
    return [(ChatEvent.USER_LEFT, _members_except(chat, chat.group_admin_id))]


def typing(chat: Chat, typist_id: int, started: bool) -> Fanout:
    event = ChatEvent.TYPING_STARTED if started else ChatEvent.TYPING_STOPPED
    return [(event, _members_except(chat, typist_id))]
