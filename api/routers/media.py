"""
Media router: originals and thumbnails from the public directory.

Files are immutable once written (names carry a timestamp or derive from
one), so responses are cached for 30 days.
"""

import os

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import FileResponse

from api.database import get_config
from exceptions import NotFoundError

router = APIRouter(tags=["media"])

CACHE_CONTROL = 'public, max-age=2592000, immutable'


def resolve_public_file(public_dir: str, subdir: str, path: str) -> str:
    """Map a request path to a file under public_dir/subdir, refusing traversal."""
    root = os.path.realpath(os.path.join(public_dir, subdir))
    resolved = os.path.realpath(os.path.join(root, path))
    if not resolved.startswith(root + os.sep) or not os.path.isfile(resolved):
        raise NotFoundError("File not found")
    return resolved


def _file_etag(file_path: str) -> str:
    stat = os.stat(file_path)
    return f'"{int(stat.st_mtime):x}-{stat.st_size:x}"'


def _cached_file_response(file_path: str, request: Request) -> Response:
    """FileResponse with ETag and conditional 304."""
    etag = _file_etag(file_path)
    if request.headers.get('if-none-match') == etag:
        return Response(status_code=304, headers={'ETag': etag, 'Cache-Control': CACHE_CONTROL})
    return FileResponse(file_path, headers={'Cache-Control': CACHE_CONTROL, 'ETag': etag})


@router.get("/photos/{path:path}")
def serve_photo(path: str, request: Request, config: dict = Depends(get_config)):
    return _cached_file_response(resolve_public_file(config['public_dir'], 'photos', path), request)


@router.get("/thumbnails/{path:path}")
def serve_thumbnail(path: str, request: Request, config: dict = Depends(get_config)):
    return _cached_file_response(resolve_public_file(config['public_dir'], 'thumbnails', path), request)
