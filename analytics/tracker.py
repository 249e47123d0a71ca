"""
View analytics: page-view and photo-view recording plus rollups.

Timestamps compare as SQLite 'YYYY-MM-DD HH:MM:SS' UTC strings.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from analytics.visitors import hash_visitor, is_bot, parse_browser, parse_device
from exceptions import ValidationError

DEFAULT_DAYS = 30
TOP_N = 10

# summary key -> page_views column; empty values are excluded except for pages
_BREAKDOWNS = [
    ('top_pages', 'path', False),
    ('top_referrers', 'referrer', True),
    ('top_browsers', 'browser', True),
    ('top_devices', 'device', True),
    ('top_countries', 'country', True),
]


def _to_sqlite(dt):
    return dt.strftime('%Y-%m-%d %H:%M:%S')


def resolve_date_range(days=None, date_from=None, date_to=None, now=None):
    """
    Resolve the (since, until) bounds of an analytics query.

    An explicit from/to pair wins over the trailing window; both bounds are
    inclusive, from 00:00:00 to 23:59:59.

    Args:
        days: trailing window size (default 30)
        date_from, date_to: 'YYYY-MM-DD' strings
        now: override for the current UTC time

    Returns:
        tuple: (since, until) SQLite timestamp strings

    Raises:
        ValidationError: days reaches before the earliest representable date
    """
    if date_from and date_to:
        return f"{date_from} 00:00:00", f"{date_to} 23:59:59"
    now = now or datetime.now(timezone.utc)
    days = DEFAULT_DAYS if days is None else days
    try:
        since = now - timedelta(days=days)
    except OverflowError:
        raise ValidationError(f"days out of range: {days}")
    return _to_sqlite(since), _to_sqlite(now)


@dataclass
class PhotoViewEvent:
    photo_id: int
    ip_hash: str
    browser: str
    device: str


class ViewAnalytics:
    """Records views into the catalog store and computes rollups over them."""

    def __init__(self, store, country_resolver=None):
        self.store = store
        self.country_resolver = country_resolver

    def resolve_country(self, ip):
        if self.country_resolver is None:
            return ''
        return self.country_resolver.resolve(ip)

    # --- recording ---

    def record_page_view(self, path, referrer, user_agent, ip, country=None):
        """Append one page view. Returns False when the user agent is a bot."""
        if is_bot(user_agent):
            return False
        if country is None:
            country = self.resolve_country(ip)
        self.store.insert_page_view(
            path=path,
            referrer=referrer or '',
            user_agent=user_agent or '',
            ip_hash=hash_visitor(ip, user_agent or ''),
            country=country or '',
            browser=parse_browser(user_agent),
            device=parse_device(user_agent),
        )
        return True

    def record_photo_view(self, photo_id, user_agent, ip):
        """
        Count a photo view once per visitor.

        Returns:
            PhotoViewEvent to pass to log_photo_view, or None for bots
        """
        if is_bot(user_agent):
            return None
        event = PhotoViewEvent(
            photo_id=photo_id,
            ip_hash=hash_visitor(ip, user_agent or ''),
            browser=parse_browser(user_agent),
            device=parse_device(user_agent),
        )
        self.store.record_photo_view(photo_id, event.ip_hash)
        return event

    def log_photo_view(self, event, ip):
        """Append the event to the full view log with a best-effort country."""
        country = self.resolve_country(ip)
        self.store.log_photo_view(event.photo_id, event.ip_hash, event.browser, event.device, country)

    # --- rollups ---

    def _count_since(self, modifier_sql):
        return self.store.scalar(
            f"SELECT COUNT(*) FROM page_views WHERE created_at >= {modifier_sql}"
        )

    def get_analytics_summary(self, days=None, date_from=None, date_to=None):
        """Totals, uniques and top-10 breakdowns over the range, plus fixed windows."""
        since, until = resolve_date_range(days, date_from, date_to)
        in_range = "created_at >= ? AND created_at <= ?"

        summary = {
            'total_views': self.store.scalar(
                f"SELECT COUNT(*) FROM page_views WHERE {in_range}", (since, until)),
            'unique_visitors': self.store.scalar(
                f"SELECT COUNT(DISTINCT ip_hash) FROM page_views WHERE {in_range}", (since, until)),
            'views_today': self._count_since("datetime('now', 'start of day')"),
            'views_7d': self._count_since("datetime('now', '-7 days')"),
            'views_30d': self._count_since("datetime('now', '-30 days')"),
        }

        for key, column, skip_empty in _BREAKDOWNS:
            non_empty = f" AND {column} != ''" if skip_empty else ''
            summary[key] = self.store.fetchall(
                f"SELECT {column} AS name, COUNT(*) AS count FROM page_views "
                f"WHERE {in_range}{non_empty} "
                f"GROUP BY {column} ORDER BY count DESC, name ASC LIMIT ?",
                (since, until, TOP_N)
            )
        return summary

    def get_views_over_time(self, days=None, date_from=None, date_to=None):
        """Views per calendar date in the range, ascending; empty dates are omitted."""
        since, until = resolve_date_range(days, date_from, date_to)
        return self.store.fetchall('''
            SELECT date(created_at) AS date, COUNT(*) AS views
            FROM page_views
            WHERE created_at >= ? AND created_at <= ?
            GROUP BY date(created_at)
            ORDER BY date ASC
        ''', (since, until))
