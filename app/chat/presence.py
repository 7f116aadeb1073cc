"""
Presence router: who is connected, and how to reach them.

Each WebSocket connection (ChatEventConsumer) owns one channel on the
Channels layer, which is its outbound queue. After the join handshake the
connection is registered under its user:

- the channel joins the layer group "user_<id>", the user's delivery
  address shared by every device that user has connected, and
- the local registry records user_id -> {channel_name, ...} for this
  process, guarded by a lock since consumers run on the event loop while
  services publish from sync threads.

broadcast() sends one group message per target user. Users with no live
connection miss the event: nothing is queued or retried.

Usage:
    from chat.presence import presence_router

    await presence_router.register(user.id, self.channel_name)
    await presence_router.broadcast([2, 3], "message_received", payload)
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict

from channels.layers import get_channel_layer

from chat.constants import CHANNEL_EVENT_TYPE

logger = logging.getLogger(__name__)


def user_group_name(user_id) -> str:
    """Channel layer group that reaches every connection of a user."""
    return f"user_{user_id}"


class PresenceRouter:
    """
    Maps user ids to live connections and delivers events to them.

    Attributes:
        channel_layer_alias: Which CHANNEL_LAYERS entry to use
    """

    def __init__(self, channel_layer_alias: str = "default"):
        self.channel_layer_alias = channel_layer_alias
        self._connections: dict[int, set[str]] = defaultdict(set)
        self._lock = threading.Lock()

    @property
    def channel_layer(self):
        return get_channel_layer(self.channel_layer_alias)

    async def register(self, user_id: int, channel_name: str) -> None:
        """Attach a connection to the user's delivery address."""
        await self.channel_layer.group_add(user_group_name(user_id), channel_name)
        with self._lock:
            self._connections[user_id].add(channel_name)
            count = len(self._connections[user_id])
        logger.info(f"User {user_id} online ({count} local connection(s))")

    async def unregister(self, user_id: int, channel_name: str) -> None:
        """Detach a connection; safe to call for one that never registered."""
        await self.channel_layer.group_discard(user_group_name(user_id), channel_name)
        with self._lock:
            channels = self._connections.get(user_id)
            if channels is None:
                return
            channels.discard(channel_name)
            if not channels:
                del self._connections[user_id]
        logger.info(f"User {user_id} connection {channel_name} closed")

    def is_online(self, user_id: int) -> bool:
        with self._lock:
            return bool(self._connections.get(user_id))

    def clear(self) -> None:
        """Forget every local registration."""
        with self._lock:
            self._connections.clear()

    async def broadcast(self, user_ids, event: str, payload) -> None:
        """
        Deliver an event to every live connection of every listed user.

        Delivery is fire-and-forget: a failure for one user is logged and
        the rest still receive the event.
        """
        message = {"type": CHANNEL_EVENT_TYPE, "event": event, "payload": payload}
        for user_id in dict.fromkeys(user_ids):
            try:
                await self.channel_layer.group_send(user_group_name(user_id), message)
            except Exception as e:
                logger.warning(f"Failed to deliver {event} to user {user_id}: {e}")
            else:
                logger.debug(f"Delivered {event} to user {user_id}")


# Process-wide router used by consumers and the event publisher
presence_router = PresenceRouter()
