"""
Publishing chat events after commit.

ChatService calls publish() inside its transaction; delivery is deferred
with transaction.on_commit, so nothing is announced for a write that
rolls back. At commit time the chat is re-read in its resolved shape,
serialized once, and handed to the presence router for each
(event, targets) pair from the fanout policy.

Delivery is fire-and-forget: failures are logged, never retried, and
never reach the request that caused them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from django.db import transaction

from chat.presence import presence_router

if TYPE_CHECKING:
    from chat.fanout import Fanout

logger = logging.getLogger(__name__)


def _render(chat_id: int):
    from chat.models import Chat
    from chat.serializers import ChatSerializer

    chat = Chat.objects.resolved().filter(pk=chat_id).first()
    if chat is None:
        return None
    return ChatSerializer(chat).data


def deliver(chat_id: int, fanout: Fanout) -> None:
    """Serialize the chat and broadcast each event to its targets."""
    targeted = [(event, targets) for event, targets in fanout if targets]
    if not targeted:
        return

    try:
        payload = _render(chat_id)
        if payload is None:
            logger.warning(f"Chat {chat_id} vanished before its events were sent")
            return
        for event, targets in targeted:
            async_to_sync(presence_router.broadcast)(targets, event, payload)
            logger.debug(f"Published {event} for chat {chat_id} to {targets}")
    except Exception:
        logger.exception(f"Failed to publish events for chat {chat_id}")


def publish(chat_id: int, fanout: Fanout) -> None:
    """Schedule delivery for when the current transaction commits."""
    transaction.on_commit(lambda: deliver(chat_id, fanout))
