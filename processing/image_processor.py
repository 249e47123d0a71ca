"""
Image processor: thumbnails, blur placeholder, dimensions, hue and EXIF.
"""

import os
from dataclasses import dataclass

from exceptions import ProcessingError
from utils.color import dominant_hue
from utils.exif import extract_exif
from utils.image_loading import load_image
from utils.image_transforms import generate_blur_data_url, generate_photo_thumbnail

DEFAULT_IMAGE_SETTINGS = {
    'grid_size': 600,
    'grid_quality': 82,
    'large_size': 1200,
    'large_quality': 85,
    'blur_size': 16,
    'blur_quality': 20,
}


@dataclass
class ProcessedImage:
    width: int
    height: int
    thumbnail_path: str
    thumbnail_large_path: str
    blur_data_url: str


class ImageProcessor:
    """
    Derives the served renditions of one source image.

    Thumbnails are written under <public_dir>/thumbnails and referenced by
    their public paths (/thumbnails/thumb_<base>.webp and
    /thumbnails/thumb_lg_<base>.webp).
    """

    def __init__(self, public_dir, settings=None):
        self.public_dir = public_dir
        self.thumbs_dir = os.path.join(public_dir, 'thumbnails')
        self.settings = dict(DEFAULT_IMAGE_SETTINGS)
        if settings:
            self.settings.update(settings)

    @staticmethod
    def thumbnail_names(filename):
        base = os.path.splitext(filename)[0]
        return f"thumb_{base}.webp", f"thumb_lg_{base}.webp"

    def process(self, source, filename):
        """
        Decode source and write both thumbnails.

        Args:
            source: raw image bytes or a file path
            filename: stored filename the thumbnail names derive from

        Returns:
            ProcessedImage

        Raises:
            ProcessingError: decode or encode failed
        """
        s = self.settings
        img = load_image(source)
        width, height = img.size

        grid = generate_photo_thumbnail(img, s['grid_size'], s['grid_quality'])
        large = generate_photo_thumbnail(img, s['large_size'], s['large_quality'])
        blur = generate_blur_data_url(img, s['blur_size'], s['blur_quality'])

        thumb_name, thumb_lg_name = self.thumbnail_names(filename)
        os.makedirs(self.thumbs_dir, exist_ok=True)
        try:
            with open(os.path.join(self.thumbs_dir, thumb_name), 'wb') as f:
                f.write(grid)
            with open(os.path.join(self.thumbs_dir, thumb_lg_name), 'wb') as f:
                f.write(large)
        except OSError as e:
            raise ProcessingError(f"Cannot write thumbnails for {filename}: {e}") from e

        return ProcessedImage(
            width=width,
            height=height,
            thumbnail_path=f"/thumbnails/{thumb_name}",
            thumbnail_large_path=f"/thumbnails/{thumb_lg_name}",
            blur_data_url=blur,
        )

    def extract_exif(self, source):
        """Display EXIF for source ({} when unreadable)."""
        return extract_exif(source)

    def extract_dominant_hue(self, source):
        """Dominant hue 0-359, or None when achromatic or undecodable."""
        try:
            return dominant_hue(load_image(source))
        except ProcessingError:
            return None
