"""
Media app: storage of uploaded artifacts.

This app provides:
- MediaStore: staging, permanent placement, deletion and public URLs
- PhotoValidator: content-based MIME validation and size limit for photos
- purge_stale_staging: Celery task removing stranded staging files

No database models; the owning records (channel photos, message
attachments) live in the chat app and store relative paths.
"""
