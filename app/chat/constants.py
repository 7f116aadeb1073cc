"""
Constants for the chat module.

This module centralizes:
- Group and message limits
- Placeholder group photo
- Live event names
- Error codes returned by ChatService

Import example:
    from chat.constants import GROUP_CONFIG, ChatEvent, ErrorCode
"""

from typing import Final


# =============================================================================
# Group Configuration
# =============================================================================


class GROUP_CONFIG:
    """Configuration for group chats."""

    NAME_MAX_LENGTH: Final[int] = 50

    # Besides the creator; a group has at least three members
    MIN_OTHER_MEMBERS: Final[int] = 2

    DEFAULT_PHOTO: Final[str] = (
        "https://icon-library.com/images/persons-icon/persons-icon-11.jpg"
    )
    PHOTO_FOLDER: Final[str] = "group-photos"


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for messages."""

    MAX_TEXT_LENGTH: Final[int] = 10000
    IMAGE_FOLDER: Final[str] = "chat-images"


# =============================================================================
# Live Events
# =============================================================================


class ChatEvent:
    """Event names sent over the live channel as {"event": ..., "payload": ...}."""

    MESSAGE_RECEIVED: Final[str] = "message_received"
    GROUP_CREATED: Final[str] = "group_created"
    GROUP_EDITED: Final[str] = "group_edited"
    GROUP_PHOTO_REMOVED: Final[str] = "group_photo_removed"
    ADDED_TO_GROUP: Final[str] = "added_to_group"
    OTHER_USER_ADDED: Final[str] = "other_user_added"
    REMOVED_FROM_GROUP: Final[str] = "removed_from_group"
    OTHER_USER_REMOVED: Final[str] = "other_user_removed"
    USER_LEFT: Final[str] = "user_left"
    TYPING_STARTED: Final[str] = "typing_started"
    TYPING_STOPPED: Final[str] = "typing_stopped"


# Channel layer message type; dispatched to ChatEventConsumer.chat_event
CHANNEL_EVENT_TYPE: Final[str] = "chat.event"

# Close code for unauthenticated WebSocket connections
WS_CLOSE_UNAUTHENTICATED: Final[int] = 4001


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode:
    """Machine-readable error codes returned by ChatService."""

    VALIDATION_ERROR: Final[str] = "VALIDATION_ERROR"
    PAYLOAD_TOO_LARGE: Final[str] = "PAYLOAD_TOO_LARGE"
    NOT_FOUND: Final[str] = "NOT_FOUND"
    FORBIDDEN: Final[str] = "FORBIDDEN"
    DUPLICATE_GROUP: Final[str] = "DUPLICATE_GROUP"
    ALREADY_MEMBER: Final[str] = "ALREADY_MEMBER"
    NOT_MEMBER: Final[str] = "NOT_MEMBER"
