"""
Gallery analytics package.

Re-exports the view tracker, visitor helpers and country lookup.
"""

from analytics.geo import CountryResolver, is_public_ip
from analytics.tracker import PhotoViewEvent, ViewAnalytics, resolve_date_range
from analytics.visitors import hash_visitor, is_bot, parse_browser, parse_device
