"""
Image loading utilities for the gallery.

Decodes JPEG/PNG/WebP/TIFF from bytes or a path with EXIF transpose.
"""

from io import BytesIO
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from exceptions import ProcessingError

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.tiff', '.tif'}


def is_image_file(path):
    """True if the path has one of the supported image extensions (any case)."""
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def load_image(source):
    """
    Decode an image and apply its EXIF orientation.

    Args:
        source: raw image bytes, or a path (str or Path)

    Returns:
        PIL Image in RGB (or RGBA when the source has transparency)

    Raises:
        ProcessingError: the source cannot be read or decoded
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            img = Image.open(BytesIO(source))
        else:
            img = Image.open(Path(source))
        img.load()
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ProcessingError(f"Cannot decode image: {e}") from e

    if img.mode not in ('RGB', 'RGBA'):
        img = img.convert('RGBA' if 'transparency' in img.info or img.mode in ('LA', 'PA') else 'RGB')
    return img
