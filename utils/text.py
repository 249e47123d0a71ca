"""
Text helpers: slugs and upload filename sanitizing.
"""

import re

_SLUG_RE = re.compile(r'[^a-z0-9]+')
_UNSAFE_FILENAME_RE = re.compile(r'[^a-zA-Z0-9._-]')


def slugify(name):
    """Lowercase, collapse non-alphanumerics to '-', trim leading/trailing '-'.

    >>> slugify('Rocky Mountains!')
    'rocky-mountains'
    """
    return _SLUG_RE.sub('-', (name or '').lower()).strip('-')


def sanitize_filename(name):
    """Replace every character outside [A-Za-z0-9._-] with '_'.

    Path separators are replaced too, so the result never leaves its directory.
    """
    return _UNSAFE_FILENAME_RE.sub('_', name or '')
