"""
Custom QuerySet and Manager classes for soft-deletable models.

Usage:
    from core.managers import SoftDeleteManager

    class Message(SoftDeleteMixin, BaseModel):
        objects = SoftDeleteManager()  # Default: excludes deleted
        all_objects = models.Manager()  # Includes deleted

    Message.objects.all()      # Only active messages
    Message.all_objects.all()  # Everything, for lookups by identifier
    Message.objects.deleted()  # Only deleted messages

Related:
    - core.model_mixins.SoftDeleteMixin: Model mixin for soft delete fields
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone


class SoftDeleteQuerySet(models.QuerySet):
    """
    QuerySet that provides soft delete operations.

    Methods:
        delete(): Soft delete (marks is_deleted=True)
        hard_delete(): Permanent delete
        restore(): Restore soft-deleted records
        deleted(): Filter to only deleted records
        active(): Filter to only active records

    Note:
        The default filtering of deleted records happens in SoftDeleteManager,
        not in this QuerySet. This allows all_objects to use the same QuerySet
        without filtering.
    """

    def delete(self) -> tuple[int, dict[str, int]]:
        """
        Soft delete all objects in queryset.

        Records that are already deleted keep their deleted_at timestamp.

        Returns:
            Tuple of (count, {model_name: count}) matching Django's delete()
        """
        count = self.filter(is_deleted=False).update(
            is_deleted=True,
            deleted_at=timezone.now(),
            updated_at=timezone.now(),
        )
        return count, {self.model._meta.label: count}

    def hard_delete(self) -> tuple[int, dict[str, int]]:
        """Permanently delete all objects in queryset."""
        return super().delete()

    def restore(self) -> int:
        """Restore all soft-deleted objects in queryset."""
        return self.filter(is_deleted=True).update(
            is_deleted=False,
            deleted_at=None,
            updated_at=timezone.now(),
        )

    def deleted(self) -> SoftDeleteQuerySet:
        """Filter to only soft-deleted records."""
        return self.filter(is_deleted=True)

    def active(self) -> SoftDeleteQuerySet:
        """Filter to only active (non-deleted) records."""
        return self.filter(is_deleted=False)


class SoftDeleteManager(models.Manager):
    """
    Manager that excludes soft-deleted records by default.

    Pair it with a plain ``all_objects = models.Manager()`` (or
    ``SoftDeleteQuerySet.as_manager()``) for lookups that must see
    deleted rows.
    """

    def get_queryset(self) -> SoftDeleteQuerySet:
        """Return queryset excluding soft-deleted records."""
        return SoftDeleteQuerySet(self.model, using=self._db).filter(is_deleted=False)

    def deleted(self) -> SoftDeleteQuerySet:
        """Return only soft-deleted records."""
        return SoftDeleteQuerySet(self.model, using=self._db).filter(is_deleted=True)

    def with_deleted(self) -> SoftDeleteQuerySet:
        """Return all records including soft-deleted ones."""
        return SoftDeleteQuerySet(self.model, using=self._db)
