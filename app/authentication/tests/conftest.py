"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, user_client):
        response = user_client.get("/api/v1/auth/")
        assert response.status_code == 200
"""

import pytest

from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a basic active user."""
    return UserFactory(name="Ada Lovelace", username="ada")


@pytest.fixture
def other_user(db):
    return UserFactory(name="Grace Hopper", username="grace")


@pytest.fixture
def user_client(client_for, user):
    """API client authenticated as user."""
    return client_for(user)
