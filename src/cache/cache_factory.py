# src/cache/cache_factory.py — v1
"""Factory for content cache instantiation."""

from __future__ import annotations

from fusextractor.cache.base_cache_store import BaseCacheStore
from fusextractor.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to ``data/cache``.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "json" if settings is None else settings.cache_backend

    if backend == "json":
        from fusextractor.cache.json_store import JsonCacheStore

        cache_root = "data/cache" if settings is None else settings.cache_root
        return JsonCacheStore(cache_root=cache_root)

    raise ValueError(f"Unsupported cache backend: {backend!r}")
