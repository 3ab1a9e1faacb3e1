# src/cache/directory_store.py — v2
"""Directory-backed build cache (the p2 repository cache).

Layout: each fingerprint segment is one directory level under the cache
root, and the leaf directory is a full copy of the cached artifact tree::

    <root>/scala-ide/<ide>/<scala>/<sbt>/<refactoring>/<scalariform>/...

The presence of the leaf directory is the only witness of a cache hit.
Entries are copied under ``<root>/.staging`` first and renamed into place, so
an interrupted copy never looks like a hit and never sits inside the entry
tree. Stage names cannot start with ".", so the staging area cannot collide
with an entry. Concurrent runs against the same root are not coordinated:
the store assumes a single writer.
"""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

from uberbuild.cache.base_cache_store import BaseCacheStore, StorageError
from uberbuild.cache.fingerprint import validate_segment
from uberbuild.cache.models import Fingerprint

logger = logging.getLogger(__name__)

STAGING_DIR = ".staging"


class DirectoryCacheStore(BaseCacheStore):
    """Cache store keeping one directory tree per fingerprint."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def staging_root(self) -> Path:
        """Where copies in progress and replaced entries live until renamed or removed."""
        return self._root / STAGING_DIR

    def location_of(self, fingerprint: Fingerprint) -> Path:
        path = self._root
        for segment in fingerprint.segments:
            path = path / validate_segment(segment)
        return path

    async def exists(self, fingerprint: Fingerprint) -> bool:
        found = self.location_of(fingerprint).is_dir()
        logger.debug("%s %s", fingerprint.key, "found" if found else "not found")
        return found

    async def store(
        self, fingerprint: Fingerprint, source_dir: Path, overwrite: bool = False
    ) -> Path:
        """Copy source_dir into the cache.

        Raises:
            StorageError: If source_dir is missing, the destination cannot be
                created, or an entry already exists and overwrite is False.
        """
        source = Path(source_dir)
        if not source.is_dir():
            raise StorageError(
                f"Cannot cache {fingerprint.key}: {source} does not exist or is not a directory"
            )

        target = self.location_of(fingerprint)
        if target.exists() and not overwrite:
            raise StorageError(
                f"Cache entry {fingerprint.key} already exists at {target}"
            )

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self.staging_root.mkdir(exist_ok=True)
        except OSError as exc:
            raise StorageError(
                f"Cannot create cache directory {target.parent}: {exc}"
            ) from exc

        staging = self._staging_path(fingerprint.stage, "tmp")
        try:
            shutil.copytree(source, staging, symlinks=True)
            if target.exists():
                self._replace(fingerprint, target, staging)
            else:
                os.rename(staging, target)
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise StorageError(f"Cannot store cache entry {fingerprint.key}: {exc}") from exc

        logger.info("%s cached", fingerprint.key)
        return target

    async def delete(self, fingerprint: Fingerprint) -> None:
        target = self.location_of(fingerprint)
        if not target.exists():
            return
        try:
            shutil.rmtree(target)
        except OSError as exc:
            raise StorageError(f"Cannot delete cache entry {fingerprint.key}: {exc}") from exc
        logger.info("%s removed from cache", fingerprint.key)

    async def purge_temp(self) -> int:
        """Empty the staging area; finalized entries are never visited."""
        if not self.staging_root.is_dir():
            return 0
        removed = 0
        for path in sorted(self.staging_root.iterdir()):
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path, ignore_errors=True)
            else:
                path.unlink(missing_ok=True)
            removed += 1
        if removed:
            logger.warning("Removed %d unfinished cache entries under %s", removed, self.staging_root)
        return removed

    def _staging_path(self, stage: str, kind: str) -> Path:
        return self.staging_root / f"{stage}.{kind}-{uuid.uuid4().hex[:8]}"

    def _replace(self, fingerprint: Fingerprint, target: Path, staging: Path) -> None:
        """Swap a finished staging copy in place of an existing entry."""
        trash = self._staging_path(fingerprint.stage, "old")
        os.rename(target, trash)
        try:
            os.rename(staging, target)
        except OSError:
            os.rename(trash, target)
            raise
        shutil.rmtree(trash, ignore_errors=True)
        logger.warning("Overwrote cache entry at %s", target)
