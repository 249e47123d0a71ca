"""
Visitor identity and user-agent classification.
"""

import hashlib
import re

BOT_PATTERN = re.compile(r'bot|crawl|spider|slurp|googlebot|bingbot|yandex|baidu|duckduck', re.I)

_BROWSERS = [
    ('Edge', lambda ua: re.search(r'Edg/', ua, re.I)),
    ('Chrome', lambda ua: re.search(r'Chrome/', ua, re.I) and not re.search(r'Chromium', ua, re.I)),
    ('Firefox', lambda ua: re.search(r'Firefox/', ua, re.I)),
    ('Safari', lambda ua: re.search(r'Safari/', ua, re.I) and not re.search(r'Chrome', ua, re.I)),
    ('Opera', lambda ua: re.search(r'Opera|OPR/', ua, re.I)),
]

_MOBILE_RE = re.compile(r'Mobile|Android.*Mobile|iPhone|iPod', re.I)
_TABLET_RE = re.compile(r'iPad|Android(?!.*Mobile)|Tablet', re.I)


def hash_visitor(ip, user_agent):
    """Pseudonymous visitor key: first 16 hex chars of sha256(ip:user_agent)."""
    return hashlib.sha256(f"{ip}:{user_agent}".encode('utf-8')).hexdigest()[:16]


def parse_browser(user_agent):
    ua = user_agent or ''
    for name, matches in _BROWSERS:
        if matches(ua):
            return name
    return 'Other'


def parse_device(user_agent):
    ua = user_agent or ''
    if _MOBILE_RE.search(ua):
        return 'Mobile'
    if _TABLET_RE.search(ua):
        return 'Tablet'
    return 'Desktop'


def is_bot(user_agent):
    return bool(BOT_PATTERN.search(user_agent or ''))
