"""
SEO router: robots.txt and sitemap.xml.
"""

from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from api.database import get_config, get_store

router = APIRouter(tags=["seo"])

STATIC_ROUTES = [
    ('', 'weekly', '1.0'),
    ('/gallery', 'daily', '0.9'),
    ('/albums', 'weekly', '0.8'),
]


def _base_url(config):
    return str(config.get('domain') or '').rstrip('/')


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots(config: dict = Depends(get_config)):
    base = _base_url(config)
    return (
        "User-agent: *\n"
        "Allow: /\n"
        "Allow: /gallery\n"
        "Allow: /albums\n"
        "Disallow: /admin\n"
        "Disallow: /api\n"
        "\n"
        f"Sitemap: {base}/sitemap.xml\n"
    )


def build_sitemap(base, albums):
    """Sitemap XML for the static pages plus one entry per album."""
    urls = [(f"{base}{path}", None, freq, priority) for path, freq, priority in STATIC_ROUTES]
    for album in albums:
        lastmod = (album.get('created_at') or '')[:10] or None
        urls.append((f"{base}/albums/{album['slug']}", lastmod, 'weekly', '0.7'))

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for loc, lastmod, freq, priority in urls:
        lines.append('  <url>')
        lines.append(f'    <loc>{escape(loc)}</loc>')
        if lastmod:
            lines.append(f'    <lastmod>{lastmod}</lastmod>')
        lines.append(f'    <changefreq>{freq}</changefreq>')
        lines.append(f'    <priority>{priority}</priority>')
        lines.append('  </url>')
    lines.append('</urlset>')
    return '\n'.join(lines) + '\n'


@router.get("/sitemap.xml")
def sitemap(store=Depends(get_store), config: dict = Depends(get_config)):
    return Response(content=build_sitemap(_base_url(config), store.get_albums()), media_type="application/xml")
