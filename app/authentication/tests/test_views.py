"""
Integration tests for the authentication API.

Endpoints:
    /api/v1/auth/                 POST log in, GET current user
    /api/v1/users/                POST register, GET search, PUT update
    /api/v1/users/removephoto/    PUT
    /api/v1/users/<id>/           GET
"""

import pytest
from rest_framework import status

from authentication.constants import DEFAULT_PROFILE_PICTURE
from authentication.models import User
from authentication.tests.factories import DEFAULT_PASSWORD, UserFactory

AUTH_URL = "/api/v1/auth/"
USERS_URL = "/api/v1/users/"


def _registration(**overrides):
    data = {
        "name": "Ada",
        "email": "ada@example.com",
        "username": "ada",
        "password": "secret1",
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
class TestRegisterEndpoint:
    def test_register_returns_tokens(self, api_client, object_storage):
        response = api_client.post(USERS_URL, _registration(), format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert {"token", "refresh"} <= set(response.data)
        assert User.objects.filter(email="ada@example.com").exists()

    def test_token_from_registration_authenticates(self, api_client, object_storage):
        response = api_client.post(USERS_URL, _registration(), format="json")

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
        me = api_client.get(AUTH_URL)

        assert me.status_code == status.HTTP_200_OK
        assert me.data["username"] == "ada"
        assert "password" not in me.data

    def test_register_with_picture_multipart(
        self, api_client, object_storage, image_file
    ):
        response = api_client.post(
            USERS_URL,
            _registration(profilePicture=image_file),
            format="multipart",
        )

        assert response.status_code == status.HTTP_201_CREATED
        user = User.objects.get(email="ada@example.com")
        assert user.profile_picture_public_id == object_storage.uploads[0]

    @pytest.mark.parametrize(
        "password",
        ["short", "onlyletters", "12345678", "waytoolongpassword1"],
    )
    def test_password_rule(self, api_client, password):
        response = api_client.post(
            USERS_URL, _registration(password=password), format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "VALIDATION_ERROR"

    def test_missing_fields(self, api_client):
        response = api_client.post(USERS_URL, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert {"name", "email", "username", "password"} <= set(
            response.data["errors"]
        )

    def test_duplicate_email(self, api_client, user, object_storage):
        response = api_client.post(
            USERS_URL,
            _registration(email=user.email, username="new_name"),
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "EMAIL_EXISTS"


@pytest.mark.django_db
class TestLoginEndpoint:
    def test_login(self, api_client, user):
        response = api_client.post(
            AUTH_URL,
            {"email": user.email, "password": DEFAULT_PASSWORD},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert {"token", "refresh"} == set(response.data)

    def test_wrong_password(self, api_client, user):
        response = api_client.post(
            AUTH_URL, {"email": user.email, "password": "nope1234"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {
            "error": "The details do not match. Please try again.",
            "error_code": "INVALID_CREDENTIALS",
        }

    def test_current_user_requires_token(self, api_client):
        response = api_client.get(AUTH_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["error_code"] == "NOT_AUTHENTICATED"

    def test_garbage_token_rejected(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")

        response = api_client.get(AUTH_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestUserDirectory:
    def test_search(self, user_client, user):
        grace = UserFactory(name="Grace Hopper", username="gh")
        UserFactory(name="Alan Turing", username="alan")

        response = user_client.get(USERS_URL, {"search": "grace"})

        assert response.status_code == status.HTTP_200_OK
        assert [row["id"] for row in response.data] == [grace.id]
        assert "email" not in response.data[0]

    def test_public_profile(self, api_client, user):
        response = api_client.get(f"{USERS_URL}{user.id}/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Ada Lovelace"
        assert "email" not in response.data

    def test_missing_profile(self, api_client, db):
        response = api_client.get(f"{USERS_URL}999999/")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "USER_NOT_FOUND"


@pytest.mark.django_db
class TestProfileEndpoints:
    def test_update_profile(self, user_client, object_storage):
        response = user_client.put(
            USERS_URL, {"status": "Out to lunch", "name": "Ada L."}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == "Out to lunch"
        assert response.data["name"] == "Ada L."

    def test_invalid_username_format(self, user_client):
        response = user_client.put(USERS_URL, {"username": "no spaces"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_remove_photo(self, user_client, user, object_storage):
        user.profile_picture = "https://cdn.test/profile-pictures/p1"
        user.profile_picture_public_id = "profile-pictures/p1"
        user.save()

        response = user_client.put(f"{USERS_URL}removephoto/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["profile_picture"] == DEFAULT_PROFILE_PICTURE
        assert object_storage.deletes == ["profile-pictures/p1"]

    def test_storage_failure_is_generic_500(self, user_client, user, object_storage):
        user.profile_picture_public_id = "profile-pictures/p1"
        user.save()
        object_storage.fail_delete = True

        response = user_client.put(f"{USERS_URL}removephoto/")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error"] == "Server error. Please try again later."
