"""
Factory Boy factories for chat models.

Provides test data for:
- Chat: Direct and group chats with their memberships
- ChatMember: A user in a chat
- Message: Text and image messages

Usage:
    from chat.tests.factories import (
        DirectChatFactory,
        GroupChatFactory,
        MessageFactory,
    )

    # Direct chat between two users (members in that order)
    chat = DirectChatFactory(users=(alice, bob))

    # Group: members bob and carol, then admin alice
    group = GroupChatFactory(group_admin=alice, members=[bob, carol])

    # A message in a chat
    message = MessageFactory(chat=group, sender=bob)
"""

import factory

from authentication.tests.factories import UserFactory
from chat.constants import GROUP_CONFIG
from chat.models import Chat, ChatMember, DirectChatPair, Message


class ChatFactory(factory.django.DjangoModelFactory):
    """Bare chat with no members."""

    class Meta:
        model = Chat
        skip_postgeneration_save = True

    is_group_chat = False


class DirectChatFactory(ChatFactory):
    """
    Direct chat between two users, with its DirectChatPair.

    Pass users=(first, second); two new users are created otherwise.
    """

    @factory.post_generation
    def users(self, create, extracted, **kwargs):
        if not create:
            return
        first, second = extracted or (UserFactory(), UserFactory())
        ChatMember.objects.create(chat=self, user=first)
        ChatMember.objects.create(chat=self, user=second)
        lower, higher = DirectChatPair.canonical(first.id, second.id)
        DirectChatPair.objects.create(
            chat=self, user_lower_id=lower, user_higher_id=higher
        )


class GroupChatFactory(ChatFactory):
    """
    Group chat with an admin.

    Memberships are created in the order create_group uses: the listed
    members first, then the admin.
    """

    is_group_chat = True
    group_name = factory.Sequence(lambda n: f"Group {n}")
    group_photo = GROUP_CONFIG.DEFAULT_PHOTO
    group_admin = factory.SubFactory(UserFactory)

    @factory.post_generation
    def members(self, create, extracted, **kwargs):
        if not create:
            return
        for user in extracted or []:
            ChatMember.objects.create(chat=self, user=user)
        if self.group_admin is not None:
            ChatMember.objects.get_or_create(chat=self, user=self.group_admin)


class ChatMemberFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ChatMember

    chat = factory.SubFactory(GroupChatFactory)
    user = factory.SubFactory(UserFactory)


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    Examples:
        # Text message
        message = MessageFactory(chat=chat, sender=user)

        # Image-only message
        message = MessageFactory(chat=chat, sender=user, text="",
                                 image="https://cdn.test/chat-images/1.png")
    """

    class Meta:
        model = Message

    chat = factory.SubFactory(DirectChatFactory)
    sender = factory.SubFactory(UserFactory)
    text = factory.Sequence(lambda n: f"Message {n}")
