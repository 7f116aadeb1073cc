"""
Chat app for real-time messaging.

This app handles:
- Direct and group chats
- Message sending (text and images)
- Group membership, admin succession and group photos
- Live event delivery to connected users

Related apps:
    - authentication: User model for members
    - media: Object storage for images

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the WebSocket handler, presence.py for delivery
    and fanout.py for who receives which event.

Usage:
    from chat.commands import SendDirectMessage
    from chat.services import ChatService

    result = ChatService.send_direct_message(
        user, SendDirectMessage(recipient_id=other_user.id, text="Hello!")
    )
"""
