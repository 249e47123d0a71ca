"""
Analytics router: page-view tracking and the admin dashboard summary.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from api.auth import require_admin
from api.database import get_analytics, get_config
from api.models.analytics import AnalyticsResponse, TrackRequest
from api.request_info import get_client_ip, get_user_agent
from exceptions import ValidationError

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _validate_date(value, name):
    if value is None:
        return None
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        raise ValidationError(f"Invalid '{name}' date, expected YYYY-MM-DD")
    return value


@router.post("/track")
def track_page_view(
    body: TrackRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    analytics=Depends(get_analytics),
    config: dict = Depends(get_config),
):
    """Record a page view after the response is sent; bots are dropped."""
    ip = get_client_ip(request, config.get('trusted_proxy_headers'))
    background_tasks.add_task(
        analytics.record_page_view, body.path, body.referrer or '', get_user_agent(request), ip
    )
    return {"success": True}


@router.get("", response_model=AnalyticsResponse, dependencies=[Depends(require_admin)])
def get_analytics_summary(
    days: Optional[int] = Query(None, ge=1),
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    analytics=Depends(get_analytics),
):
    """Summary and daily series over the last `days` days, or from/to when both are given."""
    date_from = _validate_date(date_from, 'from')
    date_to = _validate_date(date_to, 'to')

    summary = analytics.get_analytics_summary(days, date_from, date_to)
    summary['views_over_time'] = analytics.get_views_over_time(days, date_from, date_to)
    return summary
