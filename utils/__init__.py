"""
Gallery utilities package.

Re-exports image, colour, EXIF and text helpers.
"""

from utils.image_loading import load_image, is_image_file, IMAGE_EXTENSIONS
from utils.image_transforms import (
    resize_inside, encode_webp, generate_photo_thumbnail, generate_blur_data_url,
)
from utils.color import dominant_rgb, dominant_hue, rgb_to_hue, ACHROMATIC_DELTA
from utils.exif import (
    extract_exif, exif_from_tags, format_aperture, format_shutter_speed,
    format_camera, dms_to_decimal, parse_exif_datetime,
)
from utils.text import slugify, sanitize_filename
