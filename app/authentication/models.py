"""
Authentication models.

This module defines the User model: the chat participant and the identity
behind every bearer token.

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: UserService business logic
    - constants.py: Field limits and the placeholder profile picture

Security:
    - User passwords hashed with Django's password hashers
    - The password hash is never serialized (see serializers.py)
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.constants import (
    DEFAULT_PROFILE_PICTURE,
    DEFAULT_STATUS,
    NAME_MAX_LENGTH,
    STATUS_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
)
from authentication.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the login identifier.

    Fields:
        email: Unique, used for login
        username: Unique public handle (1-25 chars)
        name: Display name (1-25 chars)
        status: Free-text status line (1-100 chars)
        profile_picture: URL of the current picture (placeholder by default)
        profile_picture_public_id: Object storage handle of an uploaded
            picture; empty while the placeholder is in use
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (login identifier)",
    )
    username = models.CharField(
        unique=True,
        max_length=USERNAME_MAX_LENGTH,
        help_text="Unique public handle",
    )
    name = models.CharField(
        max_length=NAME_MAX_LENGTH,
        help_text="Display name shown to other participants",
    )
    status = models.CharField(
        max_length=STATUS_MAX_LENGTH,
        default=DEFAULT_STATUS,
    )
    profile_picture = models.URLField(
        max_length=500,
        default=DEFAULT_PROFILE_PICTURE,
    )
    profile_picture_public_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Object storage handle for deleting the uploaded picture",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    # Timestamps
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        """Return the user's email as string representation."""
        return self.email

    def get_full_name(self):
        return self.name or self.email

    def get_short_name(self):
        return self.username

    @property
    def has_uploaded_picture(self):
        """Whether the current picture lives in object storage."""
        return bool(self.profile_picture_public_id)
