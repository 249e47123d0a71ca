"""
Ingestion pipeline: folder scan, upload, backfill passes and deletion.

Each entry point runs the same sequence per file: copy/write the original,
render thumbnails, read EXIF and dominant hue, insert the catalog row.
A failing file is logged and skipped; the batch always completes.
"""

import json
import logging
import os
import shutil
import time
from dataclasses import dataclass

from exceptions import ConflictError, NotFoundError, ProcessingError
from utils.image_loading import is_image_file
from utils.text import sanitize_filename

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    added: int = 0
    skipped: int = 0


def find_images(directory):
    """Recursively list supported image files under directory, sorted."""
    results = []
    if not os.path.isdir(directory):
        return results
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for name in sorted(files):
            if is_image_file(name):
                results.append(os.path.join(root, name))
    return results


class IngestionPipeline:
    """Orchestrates ImageProcessor and CatalogStore."""

    def __init__(self, store, processor, scan_dir, public_dir):
        self.store = store
        self.processor = processor
        self.scan_dir = scan_dir
        self.public_dir = public_dir
        self.photos_dir = os.path.join(public_dir, 'photos')

    def disk_path(self, public_path):
        """Map a stored public path (/photos/x.jpg) to its file on disk."""
        return os.path.join(self.public_dir, public_path.lstrip('/'))

    def _ensure_dirs(self):
        os.makedirs(self.photos_dir, exist_ok=True)
        os.makedirs(self.processor.thumbs_dir, exist_ok=True)

    def _catalog(self, source, filename, original_path, album_id=None):
        """Process one image and insert its row. Returns the created photo."""
        processed = self.processor.process(source, filename)
        exif = self.processor.extract_exif(original_path)
        hue = self.processor.extract_dominant_hue(source)
        return self.store.create_photo({
            'filename': filename,
            'path': f"/photos/{filename}",
            'width': processed.width,
            'height': processed.height,
            'thumbnail_path': processed.thumbnail_path,
            'thumbnail_large_path': processed.thumbnail_large_path,
            'blur_data_url': processed.blur_data_url,
            'album_id': album_id,
            'exif_json': json.dumps(exif),
            'file_size_bytes': os.path.getsize(original_path),
            'dominant_hue': hue,
        })

    # --- entry points ---

    def scan_photos(self):
        """
        Catalog every new image under scan_dir.

        Safe to re-run: files whose /photos/<name> is already cataloged are
        counted as skipped.

        Returns:
            ScanResult
        """
        self._ensure_dirs()
        result = ScanResult()

        for image_path in find_images(self.scan_dir):
            filename = os.path.basename(image_path)
            if self.store.photo_exists_by_path(f"/photos/{filename}"):
                result.skipped += 1
                continue

            dest_path = os.path.join(self.photos_dir, filename)
            copied = False
            try:
                if not os.path.exists(dest_path):
                    shutil.copy2(image_path, dest_path)
                    copied = True
                self._catalog(image_path, filename, image_path)
                result.added += 1
            except (ProcessingError, ConflictError, OSError) as e:
                logger.warning(f"Failed to process {image_path}: {e}")
                # a pre-existing public original is left in place
                partial = self._thumbnail_disk_paths(filename)
                self._remove_files([dest_path, *partial] if copied else partial)
                result.skipped += 1

        logger.info(f"Scan of {self.scan_dir}: {result.added} added, {result.skipped} skipped")
        return result

    def _upload_filename(self, stamp, ordinal, original_name):
        """<millis>_<ordinal>_<sanitized name>, bumping millis past any existing file."""
        safe_name = sanitize_filename(original_name)
        while True:
            filename = f"{stamp}_{ordinal}_{safe_name}"
            if not (os.path.exists(os.path.join(self.photos_dir, filename))
                    or self.store.photo_exists_by_path(f"/photos/{filename}")):
                return filename
            stamp += 1

    def process_upload(self, files, album_id=None):
        """
        Catalog uploaded files.

        Args:
            files: iterable of (original_name, data_bytes)
            album_id: optional album for every file

        Returns:
            list of created photo rows (failed files are omitted)
        """
        self._ensure_dirs()
        stamp = int(time.time() * 1000)
        photos = []

        for ordinal, (original_name, data) in enumerate(files):
            filename = self._upload_filename(stamp, ordinal, original_name)
            dest_path = os.path.join(self.photos_dir, filename)
            try:
                with open(dest_path, 'wb') as f:
                    f.write(data)
                photos.append(self._catalog(data, filename, dest_path, album_id))
            except (ProcessingError, ConflictError, OSError) as e:
                logger.warning(f"Failed to process upload {original_name!r}: {e}")
                self._remove_files([dest_path, *self._thumbnail_disk_paths(filename)])

        return photos

    # --- backfill passes ---

    def backfill_file_sizes(self):
        """Fill file_size_bytes for rows missing it. Missing files are skipped."""
        count = 0
        for row in self.store.get_photos_without_size():
            try:
                size = os.path.getsize(self.disk_path(row['path']))
            except OSError:
                continue
            self.store.update_photo_size(row['id'], size)
            count += 1
        return count

    def backfill_exif(self):
        """Re-extract EXIF for rows with an empty blob; only non-empty results are written."""
        count = 0
        for row in self.store.get_photos_without_exif():
            exif = self.processor.extract_exif(self.disk_path(row['path']))
            if exif:
                self.store.update_photo_exif(row['id'], json.dumps(exif))
                count += 1
        return count

    def backfill_dominant_hue(self):
        """Recompute hue for rows without one; null results are written back as null."""
        count = 0
        for row in self.store.get_photos_without_hue():
            hue = self.processor.extract_dominant_hue(self.disk_path(row['path']))
            self.store.update_photo_dominant_hue(row['id'], hue)
            if hue is not None:
                count += 1
        return count

    # --- deletion ---

    def _thumbnail_disk_paths(self, filename):
        return [os.path.join(self.processor.thumbs_dir, name)
                for name in self.processor.thumbnail_names(filename)]

    def _remove_files(self, paths):
        for path in paths:
            try:
                if os.path.exists(path):
                    os.remove(path)
            except OSError as e:
                logger.warning(f"Failed to delete file {path}: {e}")

    def delete_photo(self, photo_id):
        """
        Delete a photo row and its original and thumbnail files.

        Raises:
            NotFoundError: no such photo
        """
        photo = self.store.get_photo(photo_id)
        if photo is None:
            raise NotFoundError("Photo not found")
        paths = [photo['path'], photo['thumbnail_path'], photo['thumbnail_large_path']]
        self._remove_files([self.disk_path(p) for p in paths if p])
        self.store.delete_photo(photo_id)
