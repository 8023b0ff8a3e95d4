"""
Image upload optimisation.

Uploaded images are checked to really be images, downscaled so the long
edge is at most UPLOAD_MAX_DIMENSION, and stored as WEBP under
MEDIA_ROOT/<type>/.
"""

import logging
import os
import uuid
from io import BytesIO

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger('storefront.images')

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}


class InvalidImage(Exception):
    pass


def optimize_image(fileobj, max_dimension=None, quality=82):
    """
    Return WEBP bytes of the uploaded image, downscaled if needed.

    Raises:
        InvalidImage: The file is not a readable image
    """
    max_dimension = max_dimension or settings.UPLOAD_MAX_DIMENSION
    try:
        image = Image.open(fileobj)
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImage('Only image files are allowed.') from exc

    # Respect camera orientation before dropping EXIF
    image = ImageOps.exif_transpose(image)

    if image.mode not in ('RGB', 'RGBA'):
        image = image.convert('RGBA' if 'A' in image.getbands() else 'RGB')

    image.thumbnail((max_dimension, max_dimension))

    output = BytesIO()
    image.save(output, format='WEBP', quality=quality)
    return output.getvalue()


def save_upload(upload, upload_type):
    """
    Validate, optimise and store one uploaded file.

    Returns:
        str: Public URL of the stored image
    """
    ext = os.path.splitext(upload.name)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidImage('Only image files are allowed.')
    if upload.size > settings.UPLOAD_MAX_BYTES:
        raise InvalidImage('Image is larger than 10 MB.')

    data = optimize_image(upload)
    name = f"{upload_type}/{uuid.uuid4().hex}.webp"
    stored = default_storage.save(name, ContentFile(data))
    logger.info('Stored %s (%d -> %d bytes)', stored, upload.size, len(data))
    return default_storage.url(stored)


def delete_upload(url):
    """Remove a previously uploaded image given its public URL."""
    if not url.startswith(settings.MEDIA_URL):
        return False
    name = url[len(settings.MEDIA_URL):]
    if '..' in name or not default_storage.exists(name):
        return False
    default_storage.delete(name)
    return True
