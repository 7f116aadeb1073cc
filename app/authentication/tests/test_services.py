"""
Tests for UserService.

Test Organization:
    - Each service method has its own test class
    - Object storage is the in-memory double from the object_storage fixture
"""

import pytest
from django.db import DatabaseError
from rest_framework_simplejwt.tokens import AccessToken

from authentication.constants import DEFAULT_PROFILE_PICTURE, ErrorCode
from authentication.models import User
from authentication.services import UserService
from authentication.tests.factories import DEFAULT_PASSWORD, UserFactory
from core.exceptions import ExternalServiceError


@pytest.mark.django_db
class TestRegister:
    def test_creates_user(self, object_storage):
        result = UserService.register(
            name="Ada", email="ada@example.com", username="ada", password="secret1"
        )

        assert result.success
        user = result.data
        assert user.email == "ada@example.com"
        assert user.check_password("secret1")
        assert user.profile_picture == DEFAULT_PROFILE_PICTURE
        assert object_storage.uploads == []

    def test_uploads_profile_picture(self, object_storage, image_file):
        result = UserService.register(
            name="Ada",
            email="ada@example.com",
            username="ada",
            password="secret1",
            profile_picture=image_file,
        )

        user = result.data
        assert user.profile_picture_public_id == object_storage.uploads[0]
        assert user.profile_picture.endswith(user.profile_picture_public_id)

    def test_duplicate_email_fails(self, user, object_storage):
        result = UserService.register(
            name="Other",
            email=user.email.upper(),
            username="someone",
            password="secret1",
        )

        assert not result.success
        assert result.error_code == ErrorCode.EMAIL_EXISTS

    def test_duplicate_username_fails(self, user, object_storage):
        result = UserService.register(
            name="Other", email="new@example.com", username="ADA", password="secret1"
        )

        assert result.error_code == ErrorCode.USERNAME_TAKEN
        assert User.objects.count() == 1

    def test_large_picture_fails_without_upload(self, object_storage, large_image_file):
        result = UserService.register(
            name="Ada",
            email="ada@example.com",
            username="ada",
            password="secret1",
            profile_picture=large_image_file,
        )

        assert result.error_code == ErrorCode.PAYLOAD_TOO_LARGE
        assert object_storage.uploads == []
        assert not User.objects.exists()


@pytest.mark.django_db
class TestAuthenticate:
    def test_valid_credentials(self, user):
        result = UserService.authenticate(user.email, DEFAULT_PASSWORD)

        assert result.success
        assert result.data == user

    def test_unknown_email(self, db):
        result = UserService.authenticate("nobody@example.com", "secret1")

        assert result.error_code == ErrorCode.INVALID_CREDENTIALS
        assert result.error == "No user found with this email. Please sign up first."

    def test_wrong_password(self, user):
        result = UserService.authenticate(user.email, "wrong123")

        assert result.error_code == ErrorCode.INVALID_CREDENTIALS
        assert result.error == "The details do not match. Please try again."

    def test_inactive_user_cannot_log_in(self):
        user = UserFactory(is_active=False)

        result = UserService.authenticate(user.email, DEFAULT_PASSWORD)

        assert not result.success


@pytest.mark.django_db
def test_issue_tokens_identifies_user(user):
    tokens = UserService.issue_tokens(user)

    assert set(tokens) == {"token", "refresh"}
    assert str(AccessToken(tokens["token"])["user_id"]) == str(user.id)


@pytest.mark.django_db
class TestUpdateProfile:
    def test_updates_given_fields_only(self, user, object_storage):
        result = UserService.update_profile(user, status="Busy")

        user.refresh_from_db()
        assert result.success
        assert user.status == "Busy"
        assert user.name == "Ada Lovelace"

    def test_username_taken_by_someone_else(self, user, other_user, object_storage):
        result = UserService.update_profile(user, username="Grace")

        assert result.error_code == ErrorCode.USERNAME_TAKEN

    def test_keeping_own_username_is_allowed(self, user, object_storage):
        result = UserService.update_profile(user, username="ada")

        assert result.success

    def test_new_picture_replaces_uploaded_one(self, user, object_storage, image_file):
        object_storage.objects["profile-pictures/old"] = "old.png"
        user.profile_picture_public_id = "profile-pictures/old"
        user.save()

        UserService.update_profile(user, profile_picture=image_file)

        user.refresh_from_db()
        assert object_storage.deletes == ["profile-pictures/old"]
        assert user.profile_picture_public_id == object_storage.uploads[0]

    def test_failed_old_delete_keeps_profile(self, user, object_storage, image_file):
        user.profile_picture_public_id = "profile-pictures/old"
        user.profile_picture = "https://cdn.test/profile-pictures/old"
        user.save()
        object_storage.fail_delete = True

        with pytest.raises(ExternalServiceError):
            UserService.update_profile(user, name="New", profile_picture=image_file)

        user.refresh_from_db()
        assert user.name == "Ada Lovelace"
        assert user.profile_picture_public_id == "profile-pictures/old"

    def test_failed_save_keeps_old_picture_in_storage(
        self, user, object_storage, image_file, monkeypatch
    ):
        object_storage.objects["profile-pictures/old"] = "old.png"
        user.profile_picture_public_id = "profile-pictures/old"
        user.save()
        original_save = User.save

        def failing_save(self, *args, **kwargs):
            if "profile_picture" in (kwargs.get("update_fields") or ()):
                raise DatabaseError("write failed")
            return original_save(self, *args, **kwargs)

        monkeypatch.setattr(User, "save", failing_save)

        with pytest.raises(DatabaseError):
            UserService.update_profile(user, profile_picture=image_file)

        user.refresh_from_db()
        assert user.profile_picture_public_id == "profile-pictures/old"
        assert set(object_storage.objects) == {"profile-pictures/old"}
        assert object_storage.deletes == object_storage.uploads


@pytest.mark.django_db
class TestRemoveProfilePicture:
    def test_deletes_stored_picture_and_resets(self, user, object_storage):
        user.profile_picture = "https://cdn.test/profile-pictures/p1"
        user.profile_picture_public_id = "profile-pictures/p1"
        user.save()

        result = UserService.remove_profile_picture(user)

        user.refresh_from_db()
        assert result.success
        assert object_storage.deletes == ["profile-pictures/p1"]
        assert user.profile_picture == DEFAULT_PROFILE_PICTURE
        assert user.profile_picture_public_id == ""

    def test_placeholder_needs_no_delete(self, user, object_storage):
        UserService.remove_profile_picture(user)

        assert object_storage.deletes == []


@pytest.mark.django_db
class TestGetUserAndSearch:
    def test_get_user(self, user):
        assert UserService.get_user(user.id).data == user

    def test_get_missing_user(self, db):
        result = UserService.get_user(999999)

        assert result.error_code == ErrorCode.USER_NOT_FOUND

    def test_search_excludes_caller_and_inactive(self, user):
        match = UserFactory(name="Ada Byron")
        UserFactory(name="Ada Hidden", is_active=False)

        results = list(UserService.search(user, "ada"))

        assert results == [match]
