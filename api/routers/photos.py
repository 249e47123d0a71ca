"""
Photos router: listing, detail, edit, delete, tags and the admin scan.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.auth import require_admin
from api.database import get_store, get_pipeline
from api.models.gallery import (
    Photo, PhotoListResponse, PhotoUpdateRequest, PhotoTagsRequest, ScanResponse, Tag,
)
from exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/photos", tags=["photos"])


def _get_photo_or_404(store, photo_id):
    photo = store.get_photo(photo_id)
    if photo is None:
        raise NotFoundError("Photo not found")
    return photo


@router.get("", response_model=PhotoListResponse)
def list_photos(
    album_id: Optional[int] = Query(None),
    tag: Optional[str] = Query(None),
    sort: str = Query('newest'),
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    store=Depends(get_store),
):
    """Photos filtered by album id and/or tag slug, with the unpaginated total."""
    photos = store.get_photos(album_id=album_id, tag=tag, sort=sort, limit=limit, offset=offset)
    total = store.get_photo_count(album_id=album_id, tag=tag)
    return {'photos': photos, 'total': total}


@router.post("", response_model=ScanResponse, dependencies=[Depends(require_admin)])
def scan_photos(pipeline=Depends(get_pipeline)):
    """Scan the photo directory, then run every backfill pass."""
    result = pipeline.scan_photos()
    backfilled = pipeline.backfill_file_sizes()
    exif_backfilled = pipeline.backfill_exif()
    hue_backfilled = pipeline.backfill_dominant_hue()
    logger.info(f"Backfilled {backfilled} sizes, {exif_backfilled} EXIF, {hue_backfilled} hues")
    return ScanResponse(
        added=result.added,
        skipped=result.skipped,
        backfilled=backfilled,
        exif_backfilled=exif_backfilled,
        hue_backfilled=hue_backfilled,
    )


@router.get("/{photo_id}", response_model=Photo)
def get_photo(photo_id: int, store=Depends(get_store)):
    return _get_photo_or_404(store, photo_id)


@router.patch("/{photo_id}", response_model=Photo, dependencies=[Depends(require_admin)])
def update_photo(photo_id: int, body: PhotoUpdateRequest, store=Depends(get_store)):
    """Partial update; only fields present in the body are changed."""
    _get_photo_or_404(store, photo_id)
    updates = body.model_dump(exclude_unset=True)
    if 'filename' in updates and not (updates['filename'] or '').strip():
        raise ValidationError("filename must not be empty")
    if updates.get('album_id') is not None and store.get_album_by_id(updates['album_id']) is None:
        raise NotFoundError("Album not found")
    return store.update_photo(photo_id, updates)


@router.delete("/{photo_id}", dependencies=[Depends(require_admin)])
def delete_photo(photo_id: int, pipeline=Depends(get_pipeline)):
    pipeline.delete_photo(photo_id)
    return {"success": True}


@router.get("/{photo_id}/tags", response_model=list[Tag])
def get_photo_tags(photo_id: int, store=Depends(get_store)):
    _get_photo_or_404(store, photo_id)
    return store.get_photo_tags(photo_id)


@router.put("/{photo_id}/tags", response_model=list[Tag], dependencies=[Depends(require_admin)])
def set_photo_tags(photo_id: int, body: PhotoTagsRequest, store=Depends(get_store)):
    """Replace the photo's tag set. Unknown tag ids are ignored."""
    _get_photo_or_404(store, photo_id)
    tag_ids = [tag_id for tag_id in body.tag_ids if store.get_tag(tag_id) is not None]
    return store.set_photo_tags(photo_id, tag_ids)
