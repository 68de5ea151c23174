"""
Custom user manager for email-based authentication.

This module provides the UserManager class that handles user creation
with email as the primary identifier instead of username, plus the
directory lookups the chat services use to resolve identities.

Related files:
    - models.py: User model that uses this manager

Security:
    - Passwords are automatically hashed via set_password()
    - Email addresses are normalized (lowercase domain)
    - Lookups only ever resolve active users
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Custom manager for User model with email-based authentication.

    Usage:
        # Create a regular user
        user = User.objects.create_user(
            email='user@example.com',
            password='securepassword',
            first_name='Ada',
        )

        # Directory lookups (None / missing ids when not resolvable)
        User.objects.resolve_by_id(42)
        User.objects.resolve_by_email('user@example.com')
        User.objects.resolve_many([1, 2, 3])
    """

    def create_user(self, email, password=None, **extra_fields):
        """
        Create and save a regular user with the given email and password.

        Args:
            email: User's email address (required)
            password: User's password (optional; unusable when omitted)
            **extra_fields: Additional fields to set on the user

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

    # -------------------------------------------------------------------------
    # Directory lookups
    # -------------------------------------------------------------------------

    def active(self):
        return self.get_queryset().filter(is_active=True)

    def resolve_by_id(self, user_id):
        """Return the active user with this id, or None."""
        if user_id is None:
            return None
        return self.active().filter(pk=user_id).first()

    def resolve_by_email(self, email):
        """
        Return the active user with this email, or None.

        The domain part is normalized the same way create_user does it, so
        lookups are insensitive to domain casing.
        """
        if not email:
            return None
        return self.active().filter(email=self.normalize_email(email.strip())).first()

    def resolve_many(self, user_ids):
        """
        Resolve a collection of ids in one query.

        Returns:
            Tuple of (users, missing_ids) where users preserves the
            deduplicated input order and missing_ids lists the ids that
            did not resolve to an active user.
        """
        unique_ids = list(dict.fromkeys(user_ids))
        found = {user.pk: user for user in self.active().filter(pk__in=unique_ids)}
        users = [found[uid] for uid in unique_ids if uid in found]
        missing = [uid for uid in unique_ids if uid not in found]
        return users, missing
