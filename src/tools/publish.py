# src/tools/publish.py — v1
"""Packaging of cached repositories and transfer to the download server."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from uberbuild.tools.process import run_command

logger = logging.getLogger(__name__)


class Publisher:
    """Upload archives to ``host:remote_dir`` over ssh/scp."""

    def __init__(
        self,
        host: str,
        ssh: str = "ssh",
        scp: str = "scp",
        timeout_s: float | None = None,
    ) -> None:
        self._host = host
        self._ssh = ssh
        self._scp = scp
        self._timeout_s = timeout_s

    @staticmethod
    def package(source_dir: Path, archive_base: Path) -> Path:
        """Zip the content of source_dir into ``archive_base.zip``."""
        archive_base.parent.mkdir(parents=True, exist_ok=True)
        archive = shutil.make_archive(str(archive_base), "zip", root_dir=str(source_dir))
        return Path(archive)

    async def upload(self, archive: Path, remote_dir: str) -> str:
        """Copy archive into remote_dir (created if missing); return the remote path."""
        remote_dir = remote_dir.rstrip("/")
        await run_command(
            [self._ssh, self._host, "mkdir", "-p", remote_dir], timeout_s=self._timeout_s
        )
        destination = f"{remote_dir}/{archive.name}"
        await run_command(
            [self._scp, str(archive), f"{self._host}:{destination}"], timeout_s=self._timeout_s
        )
        logger.info("Uploaded %s to %s:%s", archive.name, self._host, destination)
        return destination
