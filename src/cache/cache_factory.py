# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from pathlib import Path

from uberbuild.cache.base_cache_store import BaseCacheStore
from uberbuild.config.settings import Settings


def create_cache_store(settings: Settings) -> BaseCacheStore:
    """Instantiate the build cache rooted at P2_CACHE_DIR."""
    from uberbuild.cache.directory_store import DirectoryCacheStore

    return DirectoryCacheStore(cache_root=Path(settings.p2_cache_dir))
