"""Pydantic models for photo, album and tag endpoints."""

from pydantic import BaseModel
from typing import Optional


class Photo(BaseModel):
    id: int
    filename: str
    path: str
    width: int = 0
    height: int = 0
    thumbnail_path: str = ''
    thumbnail_large_path: str = ''
    blur_data_url: str = ''
    album_id: Optional[int] = None
    exif_json: str = '{}'
    file_size_bytes: Optional[int] = 0
    dominant_hue: Optional[int] = None
    created_at: Optional[str] = None

    model_config = {'from_attributes': True}


class PhotoListResponse(BaseModel):
    photos: list[Photo]
    total: int


class PhotoUpdateRequest(BaseModel):
    album_id: Optional[int] = None
    filename: Optional[str] = None


class ScanResponse(BaseModel):
    added: int
    skipped: int
    backfilled: int
    exif_backfilled: int
    hue_backfilled: int


class Album(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = ''
    cover_photo_id: Optional[int] = None
    created_at: Optional[str] = None
    photo_count: int = 0


class AlbumWithPhotos(Album):
    photos: list[Photo] = []


class AlbumCreateRequest(BaseModel):
    name: str
    description: Optional[str] = ''


class AlbumCoverRequest(BaseModel):
    photo_id: int


class Tag(BaseModel):
    id: int
    name: str
    slug: str
    created_at: Optional[str] = None


class TagCreateRequest(BaseModel):
    name: str


class PhotoTagsRequest(BaseModel):
    tag_ids: list[int]
