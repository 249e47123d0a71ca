"""Pydantic models for view tracking and analytics endpoints."""

from pydantic import BaseModel, ConfigDict
from typing import Optional


class PhotoViewRequest(BaseModel):
    # Client-supplied ip fields are ignored; the address comes from headers
    model_config = ConfigDict(extra='ignore')

    photo_id: int


class TrackRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    path: str
    referrer: Optional[str] = ''


class TopViewedPhoto(BaseModel):
    photo_id: int
    filename: str
    path: str
    thumbnail_path: Optional[str] = ''
    views: int


class PhotoViewsResponse(BaseModel):
    counts: dict[int, int]
    top: list[TopViewedPhoto]


class PhotoViewer(BaseModel):
    ip_hash: str
    browser: Optional[str] = ''
    device: Optional[str] = ''
    country: Optional[str] = ''
    total_views: int
    first_seen: str
    last_seen: str


class NameCount(BaseModel):
    name: Optional[str] = ''
    count: int


class DateViews(BaseModel):
    date: str
    views: int


class AnalyticsResponse(BaseModel):
    total_views: int
    unique_visitors: int
    views_today: int
    views_7d: int
    views_30d: int
    top_pages: list[NameCount]
    top_referrers: list[NameCount]
    top_browsers: list[NameCount]
    top_devices: list[NameCount]
    top_countries: list[NameCount]
    views_over_time: list[DateViews]
