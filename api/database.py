"""
Catalog access for FastAPI route handlers.

The store, pipeline and analytics instances live on app.state (built in the
lifespan); these dependencies hand them to handlers. Blocking work in async
handlers goes through run_sync.
"""

import asyncio
from functools import partial

from fastapi import Request


def get_config(request: Request) -> dict:
    return request.app.state.config


def get_store(request: Request):
    """CatalogStore for the running app."""
    return request.app.state.store


def get_pipeline(request: Request):
    """IngestionPipeline for the running app."""
    return request.app.state.pipeline


def get_analytics(request: Request):
    """ViewAnalytics for the running app."""
    return request.app.state.analytics


async def run_sync(fn, *args, **kwargs):
    """Run a synchronous function in the default executor."""
    loop = asyncio.get_event_loop()
    if kwargs:
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))
    return await loop.run_in_executor(None, partial(fn, *args))
