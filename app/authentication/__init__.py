"""
Authentication application.

Provides the email-based User model and the directory lookups
(resolve by id, by email, many at once) the chat services rely on.
Request identity itself comes from JWT bearer tokens verified by
rest_framework_simplejwt.

Usage:
    from authentication.models import User

    user = User.objects.resolve_by_email("ada@example.com")
"""
