"""
Test configuration and fixtures for chat tests.

This module provides:
- Users alice, bob, carol and dave
- A direct chat (alice, bob) and a group (bob, carol, admin alice)
- API clients authenticated as each user
- published: records live events delivered after commit

Usage:
    def test_example(group, alice_client):
        response = alice_client.get("/api/v1/chats/")
        assert response.status_code == 200
"""

import pytest

from authentication.tests.factories import UserFactory
from chat.tests.factories import DirectChatFactory, GroupChatFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return UserFactory(name="Alice", username="alice")


@pytest.fixture
def bob(db):
    return UserFactory(name="Bob", username="bob")


@pytest.fixture
def carol(db):
    return UserFactory(name="Carol", username="carol")


@pytest.fixture
def dave(db):
    """A user outside every test chat."""
    return UserFactory(name="Dave", username="dave")


# =============================================================================
# Chat Fixtures
# =============================================================================


@pytest.fixture
def direct_chat(alice, bob):
    """Direct chat started by alice."""
    return DirectChatFactory(users=(alice, bob))


@pytest.fixture
def group(alice, bob, carol):
    """Group with members [bob, carol, alice]; alice is admin."""
    return GroupChatFactory(group_name="Team", group_admin=alice, members=[bob, carol])


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def alice_client(client_for, alice):
    return client_for(alice)


@pytest.fixture
def bob_client(client_for, bob):
    return client_for(bob)


@pytest.fixture
def dave_client(client_for, dave):
    return client_for(dave)


# =============================================================================
# Event Fixtures
# =============================================================================


class RecordingRouter:
    """Stands in for the presence router; keeps every broadcast."""

    def __init__(self):
        self.sent = []

    async def broadcast(self, user_ids, event, payload):
        self.sent.append((event, list(user_ids), payload))

    def events(self):
        """[(event, targets), ...] without payloads."""
        return [(event, targets) for event, targets, _ in self.sent]


@pytest.fixture
def published(monkeypatch):
    """
    Record what chat.events delivers.

    Deliveries only happen on commit; wrap the call under test in
    django_capture_on_commit_callbacks(execute=True).
    """
    router = RecordingRouter()
    monkeypatch.setattr("chat.events.presence_router", router)
    return router
