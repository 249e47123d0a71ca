"""
Upload router: multipart photo upload into the catalog.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.auth import require_admin
from api.database import get_pipeline, get_store, run_sync
from api.models.gallery import Photo
from exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])


def _parse_album_id(value):
    if value is None or value.strip() == '':
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError("album_id must be an integer")


@router.post("", response_model=list[Photo], dependencies=[Depends(require_admin)])
async def upload_photos(
    files: Optional[list[UploadFile]] = File(None),
    album_id: Optional[str] = Form(None),
    pipeline=Depends(get_pipeline),
    store=Depends(get_store),
):
    """Process uploaded images; files that fail to process are left out of the result."""
    if not files:
        raise ValidationError("No files provided")

    album = _parse_album_id(album_id)
    if album is not None and await run_sync(store.get_album_by_id, album) is None:
        raise NotFoundError("Album not found")

    payload = []
    for upload in files:
        payload.append((upload.filename or 'upload', await upload.read()))

    photos = await run_sync(pipeline.process_upload, payload, album_id=album)
    logger.info(f"Uploaded {len(photos)} of {len(payload)} files")
    return photos
