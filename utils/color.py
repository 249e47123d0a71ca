"""
Dominant color and hue estimation for color sorting.
"""

import numpy as np

# Channel spread (0-1) below which a color counts as achromatic
ACHROMATIC_DELTA = 0.1

_HISTOGRAM_LEVELS = 16
_SAMPLE_SIZE = 128


def dominant_rgb(pil_img):
    """
    Statistically dominant color of an image.

    Pixels are bucketed into a 16x16x16 RGB histogram; the result is the
    mean color of the fullest bucket.

    Returns:
        tuple: (r, g, b) ints in 0-255
    """
    img = pil_img.convert('RGB')
    img.thumbnail((_SAMPLE_SIZE, _SAMPLE_SIZE))
    pixels = np.asarray(img, dtype=np.uint8).reshape(-1, 3)

    step = 256 // _HISTOGRAM_LEVELS
    bins = pixels // step
    keys = (bins[:, 0].astype(np.int32) * _HISTOGRAM_LEVELS + bins[:, 1]) * _HISTOGRAM_LEVELS + bins[:, 2]
    counts = np.bincount(keys, minlength=_HISTOGRAM_LEVELS ** 3)
    fullest = int(np.argmax(counts))

    mean = pixels[keys == fullest].mean(axis=0)
    r, g, b = (int(round(c)) for c in mean)
    return r, g, b


def rgb_to_hue(r, g, b):
    """
    HSL hue of an RGB triple.

    Returns:
        int in 0-359, or None for near-grayscale colors
    """
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    c_max = max(r, g, b)
    c_min = min(r, g, b)
    delta = c_max - c_min
    if delta < ACHROMATIC_DELTA:
        return None

    if c_max == r:
        hue = 60 * ((g - b) / delta)
    elif c_max == g:
        hue = 60 * ((b - r) / delta + 2)
    else:
        hue = 60 * ((r - g) / delta + 4)
    if hue < 0:
        hue += 360
    return int(round(hue)) % 360


def dominant_hue(pil_img):
    """Hue of the dominant color, or None when it is achromatic."""
    return rgb_to_hue(*dominant_rgb(pil_img))
