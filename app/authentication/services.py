"""
User account services.

This module provides UserService: registration, credential exchange,
profile edits and the user directory. Expected failures come back as
ServiceResult.failure with an ErrorCode; object storage failures raise
ExternalServiceError.

Related files:
    - models.py: User
    - constants.py: limits, placeholder picture, error codes
    - media/storage.py: profile picture uploads

Usage:
    from authentication.services import UserService

    result = UserService.register(
        name="Ada", email="ada@example.com", username="ada", password="secret1"
    )
    if result.success:
        tokens = UserService.issue_tokens(result.data)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.constants import (
    DEFAULT_PROFILE_PICTURE,
    PROFILE_PICTURE_FOLDER,
    ErrorCode,
)
from authentication.models import User
from core.services import BaseService, ServiceResult
from media.storage import (
    exceeds_image_limit,
    get_object_storage,
    replace_object,
    staged_upload,
)

if TYPE_CHECKING:
    from django.core.files import File
    from django.db.models import QuerySet


class UserService(BaseService):
    """
    Service for user accounts.

    Methods:
        register: Create an account (optionally with a profile picture)
        authenticate: Check email + password
        issue_tokens: JWT access + refresh pair for a user
        update_profile: Edit name, username, status or picture
        remove_profile_picture: Back to the placeholder picture
        get_user: Public profile lookup
        search: Directory search by name or username
    """

    IMAGE_TOO_LARGE = "Image size must be less than 1mb."

    @classmethod
    def register(
        cls,
        name: str,
        email: str,
        username: str,
        password: str,
        profile_picture: File | None = None,
    ) -> ServiceResult[User]:
        """
        Create a user account.

        Args:
            name: Display name (already trimmed and length-checked)
            email: Normalized email
            username: Public handle (already trimmed and format-checked)
            password: Raw password (already checked against the password rule)
            profile_picture: Optional uploaded image

        Returns:
            ServiceResult with the new User, or failure with
            EMAIL_EXISTS, USERNAME_TAKEN or PAYLOAD_TOO_LARGE
        """
        with staged_upload(profile_picture) as picture:
            if User.objects.filter(email__iexact=email).exists():
                return ServiceResult.failure(
                    "An account with this email already exists.",
                    error_code=ErrorCode.EMAIL_EXISTS,
                )
            if User.objects.filter(username__iexact=username).exists():
                return ServiceResult.failure(
                    "This username is already taken.",
                    error_code=ErrorCode.USERNAME_TAKEN,
                )
            if picture is not None and exceeds_image_limit(picture):
                return ServiceResult.failure(
                    cls.IMAGE_TOO_LARGE, error_code=ErrorCode.PAYLOAD_TOO_LARGE
                )

            extra = {}
            storage = get_object_storage()
            if picture is not None:
                stored = storage.upload(picture, PROFILE_PICTURE_FOLDER)
                extra = {
                    "profile_picture": stored.url,
                    "profile_picture_public_id": stored.public_id,
                }

            try:
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    username=username,
                    name=name,
                    **extra,
                )
            except IntegrityError:
                # Lost a race with a concurrent registration
                if extra:
                    storage.discard(extra["profile_picture_public_id"])
                return ServiceResult.failure(
                    "An account with this email or username already exists.",
                    error_code=ErrorCode.EMAIL_EXISTS,
                )

        cls.get_logger().info(f"Registered user {user.id} ({user.username})")
        return ServiceResult.success(user)

    @classmethod
    def authenticate(cls, email: str, password: str) -> ServiceResult[User]:
        """
        Check credentials.

        Returns:
            ServiceResult with the User, or INVALID_CREDENTIALS
        """
        user = User.objects.filter(email__iexact=email, is_active=True).first()
        if user is None:
            return ServiceResult.failure(
                "No user found with this email. Please sign up first.",
                error_code=ErrorCode.INVALID_CREDENTIALS,
            )
        if not user.check_password(password):
            return ServiceResult.failure(
                "The details do not match. Please try again.",
                error_code=ErrorCode.INVALID_CREDENTIALS,
            )
        return ServiceResult.success(user)

    @staticmethod
    def issue_tokens(user: User) -> dict[str, str]:
        """Create a JWT pair for the user."""
        refresh = RefreshToken.for_user(user)
        return {"token": str(refresh.access_token), "refresh": str(refresh)}

    @classmethod
    def update_profile(
        cls,
        user: User,
        name: str | None = None,
        username: str | None = None,
        status: str | None = None,
        profile_picture: File | None = None,
    ) -> ServiceResult[User]:
        """
        Edit the user's own profile.

        A new picture replaces the stored one: the new image is uploaded,
        the user saved, then the previous upload deleted. If that delete
        fails the profile is rolled back, the new image removed and
        ExternalServiceError propagates.

        Returns:
            ServiceResult with the updated User, or USERNAME_TAKEN /
            PAYLOAD_TOO_LARGE
        """
        with staged_upload(profile_picture) as picture:
            if (
                username is not None
                and User.objects.filter(username__iexact=username)
                .exclude(pk=user.pk)
                .exists()
            ):
                return ServiceResult.failure(
                    "This username is already taken.",
                    error_code=ErrorCode.USERNAME_TAKEN,
                )
            if picture is not None and exceeds_image_limit(picture):
                return ServiceResult.failure(
                    cls.IMAGE_TOO_LARGE, error_code=ErrorCode.PAYLOAD_TOO_LARGE
                )

            update_fields = ["updated_at"]
            for field, value in (("name", name), ("username", username), ("status", status)):
                if value is not None:
                    setattr(user, field, value)
                    update_fields.append(field)

            if picture is None:
                user.save(update_fields=update_fields)
            else:
                old_public_id = user.profile_picture_public_id

                def persist(stored):
                    user.profile_picture = stored.url
                    user.profile_picture_public_id = stored.public_id
                    user.save(
                        update_fields=update_fields
                        + ["profile_picture", "profile_picture_public_id"]
                    )

                storage = get_object_storage()
                stored = storage.upload(picture, PROFILE_PICTURE_FOLDER)
                try:
                    replace_object(storage, stored, old_public_id, persist)
                except Exception:
                    storage.discard(stored.public_id)
                    raise

        cls.get_logger().info(
            f"Updated profile of user {user.id}: {', '.join(update_fields[1:]) or 'picture'}"
        )
        return ServiceResult.success(user)

    @classmethod
    def remove_profile_picture(cls, user: User) -> ServiceResult[User]:
        """
        Reset the profile picture to the placeholder.

        The stored object is deleted first; if that fails the user keeps
        the current picture and ExternalServiceError propagates.
        """
        if user.profile_picture_public_id:
            get_object_storage().delete(user.profile_picture_public_id)

        user.profile_picture = DEFAULT_PROFILE_PICTURE
        user.profile_picture_public_id = ""
        user.save(
            update_fields=["profile_picture", "profile_picture_public_id", "updated_at"]
        )

        cls.get_logger().info(f"Removed profile picture of user {user.id}")
        return ServiceResult.success(user)

    @staticmethod
    def get_user(user_id) -> ServiceResult[User]:
        user = User.objects.filter(pk=user_id, is_active=True).first()
        if user is None:
            return ServiceResult.failure(
                "User not found.", error_code=ErrorCode.USER_NOT_FOUND
            )
        return ServiceResult.success(user)

    @staticmethod
    def search(user: User, text: str) -> QuerySet[User]:
        """Active users whose name or username contains text, except user."""
        return User.objects.search(text, exclude=user).filter(is_active=True)
