# src/tools/download.py — v1
"""HTTP access to prebuilt artifacts (nightly Scala distributions)."""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path

import httpx

from uberbuild.tools.maven import AvailabilityError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0


class ArtifactDownloader:
    """Probe and download artifacts over HTTP."""

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout_s, follow_redirects=True, transport=self._transport
        )

    async def is_available(self, url: str) -> bool:
        """True if url answers 200. Network errors count as unavailable."""
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    status = response.status_code
        except httpx.HTTPError as exc:
            logger.debug("%s unreachable: %s", url, exc)
            return False
        logger.debug("%s answered %d", url, status)
        return status == 200

    async def download(self, url: str, dest: Path) -> Path:
        """Stream url into dest.

        Raises:
            AvailabilityError: If the request fails or does not answer 200.
        """
        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading %s", url)
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    with dest.open("wb") as fh:
                        async for chunk in response.aiter_bytes():
                            fh.write(chunk)
        except httpx.HTTPError as exc:
            dest.unlink(missing_ok=True)
            raise AvailabilityError(f"Cannot download {url}: {exc}") from exc
        return dest


def extract_tarball(archive: Path, dest: Path) -> Path:
    """Extract a (compressed) tar archive into dest, refusing members outside it."""
    dest.mkdir(parents=True, exist_ok=True)
    root = dest.resolve()
    with tarfile.open(archive) as tar:
        for member in tar.getmembers():
            target = (dest / member.name).resolve()
            if target != root and root not in target.parents:
                raise AvailabilityError(f"Unsafe path {member.name!r} in {archive}")
        tar.extractall(dest)
    return dest
