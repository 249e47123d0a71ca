"""
Best-effort country lookup for analytics.

Never raises: private/loopback/link-local addresses, timeouts and odd
responses all resolve to an empty string.
"""

import ipaddress
import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = 'https://ipapi.co/{ip}/country_name/'
DEFAULT_TIMEOUT = 2.0
USER_AGENT = 'landscape-gallery/1.0'


def is_public_ip(ip):
    """True only for a parsable, globally routable address."""
    try:
        addr = ipaddress.ip_address((ip or '').strip())
    except ValueError:
        return False
    return not (addr.is_private or addr.is_loopback or addr.is_link_local
                or addr.is_multicast or addr.is_reserved or addr.is_unspecified)


class CountryResolver:
    """Resolves an IP to a country name through an HTTP lookup service."""

    def __init__(self, lookup_url=DEFAULT_LOOKUP_URL, timeout=DEFAULT_TIMEOUT, enabled=True):
        self.lookup_url = lookup_url
        self.timeout = timeout
        self.enabled = enabled

    def resolve(self, ip):
        if not self.enabled or not is_public_ip(ip):
            return ''
        try:
            res = requests.get(
                self.lookup_url.format(ip=ip.strip()),
                timeout=self.timeout,
                headers={'User-Agent': USER_AGENT},
            )
        except requests.RequestException as e:
            logger.debug(f"Country lookup failed for {ip}: {e}")
            return ''
        if not res.ok:
            return ''
        text = res.text.strip()
        # The lookup service answers with an error string for bad addresses
        if not text or 'invalid' in text.lower() or len(text) >= 100:
            return ''
        return text
