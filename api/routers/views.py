"""
Photo views router: per-visitor view counting and the admin view reports.

Registered before the photos router so /api/photos/views is not captured
by /api/photos/{photo_id}.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from api.auth import require_admin
from api.database import get_analytics, get_config, get_store
from api.models.analytics import PhotoViewRequest, PhotoViewsResponse, PhotoViewer
from api.request_info import get_client_ip, get_user_agent
from exceptions import NotFoundError

router = APIRouter(prefix="/api/photos", tags=["views"])


@router.post("/view")
def record_photo_view(
    body: PhotoViewRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    store=Depends(get_store),
    analytics=Depends(get_analytics),
    config: dict = Depends(get_config),
):
    """Count one view per visitor; the detailed log entry is written after the response."""
    if store.get_photo(body.photo_id) is None:
        raise NotFoundError("Photo not found")

    ip = get_client_ip(request, config.get('trusted_proxy_headers'))
    event = analytics.record_photo_view(body.photo_id, get_user_agent(request), ip)
    if event is not None:
        background_tasks.add_task(analytics.log_photo_view, event, ip)
    return {"success": True}


@router.get("/views", response_model=PhotoViewsResponse, dependencies=[Depends(require_admin)])
def get_photo_views(limit: int = Query(10, ge=1, le=100), store=Depends(get_store)):
    return {
        'counts': store.get_photo_view_counts(),
        'top': store.get_top_viewed_photos(limit),
    }


@router.delete("/views", dependencies=[Depends(require_admin)])
def reset_photo_views(store=Depends(get_store)):
    store.reset_photo_views()
    return {"success": True}


@router.get("/viewers", response_model=list[PhotoViewer], dependencies=[Depends(require_admin)])
def get_photo_viewers(photo_id: int = Query(...), store=Depends(get_store)):
    return store.get_photo_viewers(photo_id)
