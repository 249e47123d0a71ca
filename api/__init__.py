"""
FastAPI application factory for the gallery API server.

Serves the JSON API, the photo and thumbnail files, and the SEO endpoints.
"""

import os
import sys

# Ensure the project root is in Python path for local imports
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from analytics import CountryResolver, ViewAnalytics
from api.config import load_config
from db import CatalogStore
from exceptions import GalleryError
from processing.image_processor import ImageProcessor
from processing.ingest import IngestionPipeline

logger = logging.getLogger(__name__)


def build_services(app: FastAPI, config: dict):
    """Construct the store, pipeline and analytics and attach them to app.state."""
    store = CatalogStore(config['db_path'])
    processor = ImageProcessor(config['public_dir'], config.get('images'))
    resolver = CountryResolver(
        lookup_url=config['geo_lookup_url'],
        timeout=float(config['geo_timeout_seconds']),
        enabled=bool(config['geo_lookup_url']),
    )
    app.state.store = store
    app.state.pipeline = IngestionPipeline(store, processor, config['scan_dir'], config['public_dir'])
    app.state.analytics = ViewAnalytics(store, resolver)
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: open the catalog on startup, close it on shutdown."""
    store = build_services(app, app.state.config)
    logger.info(f"Catalog opened at {store.db_path}")
    yield
    store.close()


async def gallery_error_handler(request: Request, exc: GalleryError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(config: dict = None) -> FastAPI:
    """FastAPI application factory.

    Args:
        config: explicit settings; when omitted they are loaded from
            gallery_config.json and the environment
    """
    app = FastAPI(
        title="Landscape Gallery API",
        description="Photo gallery catalog, ingestion and view analytics",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )
    app.state.config = load_config(config)

    app.add_exception_handler(GalleryError, gallery_error_handler)

    # CORS middleware (dev: allow a frontend dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:8000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    from api.routers.auth import router as auth_router
    from api.routers.views import router as views_router
    from api.routers.photos import router as photos_router
    from api.routers.upload import router as upload_router
    from api.routers.albums import router as albums_router
    from api.routers.tags import router as tags_router
    from api.routers.analytics import router as analytics_router
    from api.routers.media import router as media_router
    from api.routers.seo import router as seo_router

    app.include_router(auth_router)
    # views before photos: /api/photos/views must not match /api/photos/{photo_id}
    app.include_router(views_router)
    app.include_router(photos_router)
    app.include_router(upload_router)
    app.include_router(albums_router)
    app.include_router(tags_router)
    app.include_router(analytics_router)
    app.include_router(media_router)
    app.include_router(seo_router)

    return app
