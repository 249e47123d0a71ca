"""
Albums router.
"""

from fastapi import APIRouter, Depends

from api.auth import require_admin
from api.database import get_store
from api.models.gallery import Album, AlbumWithPhotos, AlbumCreateRequest, AlbumCoverRequest
from exceptions import NotFoundError, ValidationError
from utils.text import slugify

router = APIRouter(prefix="/api/albums", tags=["albums"])


@router.get("", response_model=list[Album])
def list_albums(store=Depends(get_store)):
    return store.get_albums()


@router.get("/{slug}", response_model=AlbumWithPhotos)
def get_album(slug: str, store=Depends(get_store)):
    """Album by slug together with its photos, newest first."""
    album = store.get_album(slug)
    if album is None:
        raise NotFoundError("Album not found")
    album['photos'] = store.get_photos(album_id=album['id'])
    return album


@router.post("", response_model=Album, status_code=201, dependencies=[Depends(require_admin)])
def create_album(body: AlbumCreateRequest, store=Depends(get_store)):
    name = body.name.strip()
    slug = slugify(name)
    if not slug:
        raise ValidationError("Album name is required")
    return store.create_album(name, slug, body.description or '')


@router.put("/{album_id}/cover", response_model=Album, dependencies=[Depends(require_admin)])
def set_album_cover(album_id: int, body: AlbumCoverRequest, store=Depends(get_store)):
    if store.get_album_by_id(album_id) is None:
        raise NotFoundError("Album not found")
    if store.get_photo(body.photo_id) is None:
        raise NotFoundError("Photo not found")
    return store.update_album_cover(album_id, body.photo_id)
