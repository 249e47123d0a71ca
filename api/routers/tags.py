"""
Tags router.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.auth import require_admin
from api.database import get_store
from api.models.gallery import Tag, TagCreateRequest
from exceptions import ValidationError
from utils.text import slugify

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=list[Tag])
def list_tags(photo_id: Optional[int] = Query(None), store=Depends(get_store)):
    """All tags, or the tags of one photo when photo_id is given."""
    if photo_id is not None:
        return store.get_photo_tags(photo_id)
    return store.get_tags()


@router.post("", response_model=Tag, dependencies=[Depends(require_admin)])
def create_tag(body: TagCreateRequest, store=Depends(get_store)):
    """Create a tag, or return the existing one with the same slug."""
    if not slugify(body.name):
        raise ValidationError("Tag name is required")
    return store.create_tag(body.name)
