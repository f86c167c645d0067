"""Admin image uploads stored through Django's default storage."""

import logging
import os
import uuid

from django.conf import settings
from django.core.files.storage import default_storage
from django.utils import timezone
from django.utils.text import slugify

from .exceptions import UploadRejectedError

logger = logging.getLogger(__name__)

ALLOWED_FOLDERS = {'retreats', 'rooms', 'blog', 'gallery', 'general'}


def store_upload(*, file, folder: str = 'general') -> dict:
    """
    Save an uploaded image under ``uploads/<folder>/<yyyy>/<mm>/``.

    Raises:
        UploadRejectedError: For non-image content types or oversized files
    """
    if file.content_type not in settings.UPLOAD_ALLOWED_CONTENT_TYPES:
        raise UploadRejectedError("Only JPEG, PNG, WebP and GIF images are allowed")
    if file.size > settings.UPLOAD_MAX_BYTES:
        raise UploadRejectedError(f"File is larger than {settings.UPLOAD_MAX_BYTES // (1024 * 1024)} MB")

    folder = folder if folder in ALLOWED_FOLDERS else 'general'
    stem, extension = os.path.splitext(file.name)
    name = f"{slugify(stem)[:50] or 'image'}-{uuid.uuid4().hex[:8]}{extension.lower()}"
    path = default_storage.save(f"uploads/{folder}/{timezone.now():%Y/%m}/{name}", file)
    logger.info("Stored upload %s (%s bytes)", path, file.size)
    return {'path': path, 'url': default_storage.url(path)}
