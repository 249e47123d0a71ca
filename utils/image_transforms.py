"""
Image transformation utilities for the gallery.

Thumbnail generation and the inline blur placeholder.
"""

import base64
from io import BytesIO

from PIL import Image, ImageFilter

from exceptions import ProcessingError


def resize_inside(pil_img, size):
    """Fit inside size x size preserving aspect ratio; never upscales."""
    img = pil_img.copy()
    img.thumbnail((size, size), Image.Resampling.LANCZOS)
    return img


def encode_webp(pil_img, quality):
    """Encode a PIL image as WebP bytes."""
    buf = BytesIO()
    try:
        pil_img.save(buf, format="WEBP", quality=quality)
    except (OSError, ValueError, KeyError) as e:
        raise ProcessingError(f"WebP encode failed: {e}") from e
    return buf.getvalue()


def generate_photo_thumbnail(pil_img, size=600, quality=82, sharpen=True):
    """
    Generate WebP thumbnail from PIL image.

    Args:
        pil_img: PIL Image to create thumbnail from
        size: Maximum dimension for thumbnail
        quality: WebP quality 1-100
        sharpen: Apply a mild unsharp mask after downscaling

    Returns:
        bytes: WebP thumbnail as bytes
    """
    thumb = resize_inside(pil_img, size)
    if sharpen:
        thumb = thumb.filter(ImageFilter.UnsharpMask(radius=0.5, percent=50, threshold=0))
    return encode_webp(thumb, quality)


def generate_blur_data_url(pil_img, size=16, quality=20, radius=2):
    """
    Tiny blurred placeholder, base64-encoded for inline use.

    Returns:
        str: data:image/webp;base64,... URI
    """
    tiny = pil_img.copy()
    # "inside" fit: unlike thumbnail generation this may upscale very small images
    scale = size / max(tiny.size)
    new_size = (max(1, round(tiny.width * scale)), max(1, round(tiny.height * scale)))
    tiny = tiny.resize(new_size, Image.Resampling.LANCZOS)
    tiny = tiny.filter(ImageFilter.GaussianBlur(radius))
    data = encode_webp(tiny, quality)
    return f"data:image/webp;base64,{base64.b64encode(data).decode('ascii')}"
