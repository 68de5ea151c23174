"""
Authentication models.

- User: Custom user model with email-based authentication and the display
  fields (name, avatar, colour) that chat payloads embed for senders

Related files:
    - managers.py: Custom user manager for email-based creation and lookups
    - serializers.py: UserSerializer used to embed sender data in messages

Security:
    - User passwords hashed with Django's PBKDF2
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        first_name / last_name: Display name
        image: Relative path of the avatar under MEDIA_ROOT (optional)
        color: Display colour index used by clients
        is_active: Whether the user account is active
        is_staff: Elevated actor (may edit any message and pin messages)
        date_joined: When the user account was created
        updated_at: When the user record was last modified
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    first_name = models.CharField(max_length=150, blank=True, default="")
    last_name = models.CharField(max_length=150, blank=True, default="")
    image = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Relative path of the avatar image",
    )
    color = models.PositiveSmallIntegerField(
        default=0,
        help_text="Display colour index",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site and moderate messages.",
    )

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
        """Return "first last", falling back to the email."""
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email

    def get_short_name(self):
        return self.first_name or self.email.split("@")[0]
