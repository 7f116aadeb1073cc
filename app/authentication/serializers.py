"""
Authentication serializers.

Request serializers validate input only; UserService does the work.
Response serializers never expose the password hash.

Related files:
    - services.py: UserService
    - views.py: API endpoints
"""

import re

from django.core.validators import FileExtensionValidator
from rest_framework import serializers

from authentication.constants import (
    NAME_MAX_LENGTH,
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    PASSWORD_PATTERN,
    STATUS_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_PATTERN,
)
from authentication.models import User

IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "webp"]


# =============================================================================
# Response Serializers
# =============================================================================


class UserSerializer(serializers.ModelSerializer):
    """Full profile of the authenticated user."""

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "email",
            "username",
            "status",
            "profile_picture",
            "date_joined",
        ]
        read_only_fields = fields


class PublicUserSerializer(serializers.ModelSerializer):
    """Profile visible to anyone (GET /users/<id>/)."""

    class Meta:
        model = User
        fields = ["id", "name", "username", "status", "profile_picture"]
        read_only_fields = fields


class UserSearchResultSerializer(serializers.ModelSerializer):
    """Directory search hit."""

    class Meta:
        model = User
        fields = ["id", "name", "username", "profile_picture"]
        read_only_fields = fields


class TokenSerializer(serializers.Serializer):
    """Bearer tokens issued on registration and login."""

    token = serializers.CharField(help_text="JWT access token (Authorization: Bearer)")
    refresh = serializers.CharField(help_text="JWT refresh token")


# =============================================================================
# Request Serializers
# =============================================================================


def _validate_username_format(value):
    if not re.match(USERNAME_PATTERN, value):
        raise serializers.ValidationError(
            "Username can only contain letters, numbers, dots, underscores and hyphens."
        )
    return value


class RegisterSerializer(serializers.Serializer):
    """
    Registration input.

    Uniqueness of email and username is checked by UserService so the
    response can carry EMAIL_EXISTS / USERNAME_TAKEN codes.
    """

    name = serializers.CharField(max_length=NAME_MAX_LENGTH, trim_whitespace=True)
    email = serializers.EmailField()
    username = serializers.CharField(
        max_length=USERNAME_MAX_LENGTH, trim_whitespace=True
    )
    password = serializers.CharField(
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        write_only=True,
        trim_whitespace=False,
        style={"input_type": "password"},
    )
    profilePicture = serializers.FileField(
        required=False,
        allow_null=True,
        validators=[FileExtensionValidator(allowed_extensions=IMAGE_EXTENSIONS)],
    )

    def validate_username(self, value):
        return _validate_username_format(value)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_password(self, value):
        if not re.match(PASSWORD_PATTERN, value):
            raise serializers.ValidationError(
                "Password must be 6-15 characters and contain at least one "
                "letter and one number."
            )
        return value


class LoginSerializer(serializers.Serializer):
    """Credential exchange input."""

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        style={"input_type": "password"},
    )

    def validate_email(self, value):
        return value.strip().lower()


class ProfileUpdateSerializer(serializers.Serializer):
    """
    Profile edit input. Every field is optional; omitted fields are left as-is.
    """

    name = serializers.CharField(
        max_length=NAME_MAX_LENGTH, required=False, trim_whitespace=True
    )
    username = serializers.CharField(
        max_length=USERNAME_MAX_LENGTH, required=False, trim_whitespace=True
    )
    status = serializers.CharField(
        max_length=STATUS_MAX_LENGTH, required=False, trim_whitespace=True
    )
    profilePicture = serializers.FileField(
        required=False,
        allow_null=True,
        validators=[FileExtensionValidator(allowed_extensions=IMAGE_EXTENSIONS)],
    )

    def validate_username(self, value):
        return _validate_username_format(value)


class UserSearchSerializer(serializers.Serializer):
    """Query parameters for the user directory."""

    search = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=USERNAME_MAX_LENGTH
    )
