"""Django app configuration for media app."""

from django.apps import AppConfig


class MediaConfig(AppConfig):
    """Configuration for the media app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "media"
    verbose_name = "Media"

    def ready(self) -> None:
        """Create the upload directories and install the media store.

        Raises ImproperlyConfigured when MEDIA_ROOT is unusable, so a
        misconfigured deployment fails at startup rather than on the first
        upload.
        """
        from media.storage import MediaStore, set_media_store

        set_media_store(MediaStore.initialize())
