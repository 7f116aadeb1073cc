"""
Custom user manager for email-based authentication.

Related files:
    - models.py: User model that uses this manager

Security:
    - Passwords are automatically hashed via set_password()
    - Email addresses are normalized (lowercase domain)
"""

from django.contrib.auth.models import BaseUserManager
from django.db.models import Q


class UserManager(BaseUserManager):
    """
    Custom manager for User model with email-based authentication.

    Usage:
        user = User.objects.create_user(
            email='user@example.com',
            password='secret12',
            username='user',
            name='User',
        )

        admin = User.objects.create_superuser(
            email='admin@example.com',
            password='adminpassword1',
        )
    """

    def create_user(self, email, password=None, **extra_fields):
        """
        Create and save a regular user with the given email and password.

        Args:
            email: User's email address (required)
            password: User's password
            **extra_fields: Additional fields to set on the user
                (username, name, status, profile_picture, ...)

        Returns:
            User: The created user instance

        Raises:
            ValueError: If email is not provided
        """
        if not email:
            raise ValueError("The Email field must be set")

        email = self.normalize_email(email)

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        # Superusers created from the shell get a username derived from email
        extra_fields.setdefault("username", email.split("@")[0][:25])
        extra_fields.setdefault("name", extra_fields["username"])

        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create and save a superuser with the given email and password.

        Raises:
            ValueError: If is_staff or is_superuser is not True
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)

    def search(self, text, exclude=None):
        """
        Case-insensitive substring search on name or username.

        Args:
            text: Search text; blank text matches everyone
            exclude: Optional user to leave out (the caller)
        """
        queryset = self.get_queryset()
        text = (text or "").strip()
        if text:
            queryset = queryset.filter(
                Q(name__icontains=text) | Q(username__icontains=text)
            )
        if exclude is not None:
            queryset = queryset.exclude(pk=exclude.pk)
        return queryset.order_by("name", "id")
