"""
Chat application configuration.

This app provides the chat system with:
- Direct chats (one per user pair) and group chats with a single admin
- Text and image messages
- Live event delivery over WebSockets
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
