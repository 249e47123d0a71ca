"""
EXIF extraction for display metadata.

Uses exifread for fast header-only reading. Every value is formatted for
display (e.g. "f/2.8", "1/250s", "ISO 400"); decoding problems yield an
empty dict instead of an exception.
"""

import logging
from datetime import datetime
from io import BytesIO

import exifread

logger = logging.getLogger(__name__)

# Suppress exifread warnings (e.g., "File format not recognized")
logging.getLogger('exifread').setLevel(logging.ERROR)


def _ratio_to_float(value):
    """Convert an exifread Ratio/int (or a one-item list of them) to float."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    num = getattr(value, 'num', None)
    den = getattr(value, 'den', None)
    if num is not None and den is not None:
        return num / den if den else None
    return float(value)


def _tag_text(tags, key):
    tag = tags.get(key)
    if tag is None:
        return ''
    return str(tag.values if isinstance(tag.values, str) else tag).strip().strip('\x00').strip()


def _tag_number(tags, key):
    tag = tags.get(key)
    if tag is None:
        return None
    return _ratio_to_float(tag.values)


def format_number(value):
    """2.8 -> '2.8', 8.0 -> '8'."""
    return f"{value:g}"


def format_aperture(f_number):
    return f"f/{format_number(f_number)}"


def format_shutter_speed(exposure_time):
    """0.004 -> '1/250s', 2 -> '2s'."""
    if exposure_time < 1:
        return f"1/{round(1 / exposure_time)}s"
    return f"{format_number(exposure_time)}s"


def format_camera(make, model):
    """Camera name with the make prefix deduplicated ('Canon' + 'Canon EOS R5')."""
    make = (make or '').strip()
    model = (model or '').strip()
    if model.startswith(make):
        return model
    return f"{make} {model}".strip()


def dms_to_decimal(dms, ref):
    """Degrees/minutes/seconds to signed decimal degrees (S and W negative)."""
    degrees, minutes, seconds = (_ratio_to_float(v) or 0.0 for v in dms)
    decimal = degrees + minutes / 60 + seconds / 3600
    if (ref or '').upper() in ('S', 'W'):
        decimal = -decimal
    return decimal


def parse_exif_datetime(value):
    """'2024:01:15 10:30:00' -> '2024-01-15T10:30:00', or None."""
    try:
        return datetime.strptime(value.strip(), '%Y:%m:%d %H:%M:%S').isoformat()
    except (ValueError, AttributeError):
        return None


def _extract_gps(tags):
    lat = tags.get('GPS GPSLatitude')
    lon = tags.get('GPS GPSLongitude')
    if lat is None or lon is None or len(lat.values) != 3 or len(lon.values) != 3:
        return None
    latitude = dms_to_decimal(lat.values, _tag_text(tags, 'GPS GPSLatitudeRef'))
    longitude = dms_to_decimal(lon.values, _tag_text(tags, 'GPS GPSLongitudeRef'))
    if not latitude and not longitude:
        return None
    return {'latitude': latitude, 'longitude': longitude}


def exif_from_tags(tags):
    """Build the display metadata dict from exifread tags."""
    result = {}

    make = _tag_text(tags, 'Image Make')
    model = _tag_text(tags, 'Image Model')
    if make or model:
        result['camera'] = format_camera(make, model)

    lens = _tag_text(tags, 'EXIF LensModel')
    if lens:
        result['lens'] = lens

    f_number = _tag_number(tags, 'EXIF FNumber')
    if f_number:
        result['aperture'] = format_aperture(f_number)

    exposure = _tag_number(tags, 'EXIF ExposureTime')
    if exposure:
        result['shutter_speed'] = format_shutter_speed(exposure)

    iso = _tag_number(tags, 'EXIF ISOSpeedRatings')
    if iso:
        result['iso'] = f"ISO {int(iso)}"

    focal = _tag_number(tags, 'EXIF FocalLength')
    if focal:
        result['focal_length'] = f"{format_number(focal)}mm"

    date_taken = parse_exif_datetime(_tag_text(tags, 'EXIF DateTimeOriginal'))
    if date_taken:
        result['date_taken'] = date_taken

    gps = _extract_gps(tags)
    if gps:
        result['gps'] = gps

    return result


def extract_exif(source):
    """
    Extract display EXIF from an image.

    Args:
        source: path (str or Path) or raw image bytes

    Returns:
        dict: camera, lens, aperture, shutter_speed, iso, focal_length,
              date_taken, gps - only keys that were found. {} on any failure.
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            tags = exifread.process_file(BytesIO(source), details=False)
        else:
            with open(source, 'rb') as f:
                tags = exifread.process_file(f, details=False)
        return exif_from_tags(tags or {})
    except Exception as e:
        logger.debug(f"EXIF extraction failed for {source if isinstance(source, str) else 'upload'}: {e}")
        return {}
