# src/cache/base_cache_store.py — v2
"""Abstract build cache interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from uberbuild.cache.models import Fingerprint


class StorageError(Exception):
    """Raised when an artifact cannot be stored in, or removed from, the cache."""


class BaseCacheStore(ABC):
    """Content-addressed store mapping a fingerprint to a produced artifact tree."""

    @abstractmethod
    async def exists(self, fingerprint: Fingerprint) -> bool:
        """True iff a finalized entry is present for the fingerprint."""

    @abstractmethod
    async def store(
        self, fingerprint: Fingerprint, source_dir: Path, overwrite: bool = False
    ) -> Path:
        """Copy source_dir into the cache under fingerprint and return its location."""

    @abstractmethod
    def location_of(self, fingerprint: Fingerprint) -> Path:
        """Return the path an entry for fingerprint occupies (no I/O)."""

    @abstractmethod
    async def delete(self, fingerprint: Fingerprint) -> None:
        """Remove an entry."""

    @abstractmethod
    async def purge_temp(self) -> int:
        """Remove entries abandoned by interrupted stores; return how many."""
