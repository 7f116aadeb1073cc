"""
WebSocket consumer for live chat events.

Consumers:
    ChatEventConsumer: A user's live event channel

Authentication:
    JWTAuthMiddleware attaches the user to self.scope["user"]. Anonymous
    connections are closed with code 4001.

Presence:
    After the client's join handshake the connection registers with the
    presence router under its user, joining the channel group
    "user_<id>". ChatService events arrive on that group as "chat.event"
    messages and are forwarded to the client.

Message Types (from client):
    - join: {"type": "join", "user_id": 7}
    - typing: {"type": "typing", "chat_id": 4, "name": "Ada"}
    - stop_typing: {"type": "stop_typing", "chat_id": 4}

Frames (to client):
    - {"event": "connected", "payload": {"user_id": 7}}
    - {"event": <chat event name>, "payload": <resolved chat or typing info>}
    - {"event": "error", "payload": {"message": "..."}}
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from chat import fanout
from chat.constants import WS_CLOSE_UNAUTHENTICATED
from chat.models import Chat
from chat.presence import presence_router

logger = logging.getLogger(__name__)


class ChatEventConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer delivering chat events to one connected device.

    Handles:
        - Connection authentication
        - The join handshake and presence registration
        - Typing indicators relayed to the other chat members
        - Forwarding chat.event messages from the channel layer

    Attributes:
        user_id: Id of the joined user; None until the join handshake
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id: int | None = None

    @property
    def user(self):
        return self.scope.get("user")

    def _is_authenticated(self) -> bool:
        user = self.user
        return bool(user) and not isinstance(user, AnonymousUser)

    async def connect(self):
        if not self._is_authenticated():
            logger.warning("Rejected unauthenticated chat WebSocket connection")
            await self.close(code=WS_CLOSE_UNAUTHENTICATED)
            return

        # Clients that authenticate via subprotocol expect it echoed back
        subprotocol = "jwt" if "jwt" in self.scope.get("subprotocols", []) else None
        await self.accept(subprotocol=subprotocol)
        logger.info(f"User {self.user.id} opened a chat connection")

    async def disconnect(self, close_code):
        if self.user_id is not None:
            await presence_router.unregister(self.user_id, self.channel_name)

    async def receive_json(self, content, **kwargs):
        """
        Handle incoming client frames.

        Args:
            content: Parsed JSON frame from client
        """
        message_type = content.get("type") if isinstance(content, dict) else None

        if message_type == "join":
            await self._handle_join(content)
        elif message_type in ("typing", "stop_typing"):
            await self._handle_typing(content, started=message_type == "typing")
        else:
            await self._send_error(f"Unknown message type: {message_type}")

    async def _handle_join(self, content):
        """Register this connection under the authenticated user."""
        user = self.user
        if str(content.get("user_id")) != str(user.id):
            logger.warning(
                f"User {user.id} tried to join as {content.get('user_id')!r}"
            )
            await self._send_error("Cannot join as another user.")
            return

        if self.user_id is None:
            self.user_id = user.id
            await presence_router.register(self.user_id, self.channel_name)

        await self.send_json({"event": "connected", "payload": {"user_id": user.id}})

    async def _handle_typing(self, content, started: bool):
        """Relay a typing indicator to the chat's other members."""
        if self.user_id is None:
            await self._send_error("Join before sending typing events.")
            return

        chat = await self._get_member_chat(content.get("chat_id"))
        if chat is None:
            await self._send_error("Chat not found.")
            return

        payload = {
            "chat_id": chat.id,
            "user_id": self.user_id,
            "typing": started,
        }
        if started:
            payload["name"] = content.get("name") or self.user.name

        for event, targets in fanout.typing(chat, self.user_id, started):
            await presence_router.broadcast(targets, event, payload)

    async def chat_event(self, event):
        """
        Handle chat.event messages from the channel layer.

        Sends the event to the WebSocket client.
        """
        await self.send_json({"event": event["event"], "payload": event["payload"]})

    async def _send_error(self, message: str):
        await self.send_json({"event": "error", "payload": {"message": message}})

    @database_sync_to_async
    def _get_member_chat(self, chat_id) -> Chat | None:
        """The chat with its memberships, if this user belongs to it."""
        try:
            chat_id = int(chat_id)
        except (TypeError, ValueError):
            return None
        chat = (
            Chat.objects.prefetch_related("memberships")
            .filter(pk=chat_id, memberships__user_id=self.user_id)
            .first()
        )
        return chat
