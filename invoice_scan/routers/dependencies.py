"""
FastAPI dependencies shared by the routers.

The file cache is owned by the application (created in the lifespan
handler and kept on app.state) and injected into the handlers that
need it.
"""

from fastapi import Request

from ..config import get_settings
from ..services.file_cache import FileCache


def create_file_cache() -> FileCache:
    """Build a file cache with the configured lifetime policy."""
    settings = get_settings()
    return FileCache(
        ttl_seconds=settings.file_cache_ttl_seconds,
        max_entries=settings.file_cache_max_entries,
    )


def get_file_cache(request: Request) -> FileCache:
    """Return the application's file cache, creating it on first use."""
    cache = getattr(request.app.state, "file_cache", None)
    if cache is None:
        cache = create_file_cache()
        request.app.state.file_cache = cache
    return cache
