# src/tools/ant.py — v1
"""Ant invocation, used to build and deploy a Scala distribution locally."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from uberbuild.tools.process import define_flags, run_command

logger = logging.getLogger(__name__)


class AntClient:
    def __init__(
        self,
        ant_opts: str = "",
        executable: str = "ant",
        timeout_s: float | None = None,
    ) -> None:
        self._ant = executable
        self._ant_opts = ant_opts
        self._timeout_s = timeout_s

    async def run(
        self,
        cwd: Path,
        targets: Sequence[str],
        properties: Mapping[str, str] | None = None,
    ) -> None:
        args = [self._ant, *define_flags(properties or {}), *targets]
        env = {"ANT_OPTS": self._ant_opts} if self._ant_opts else None
        logger.info("ant %s in %s", " ".join(targets), cwd)
        await run_command(args, cwd=cwd, env=env, timeout_s=self._timeout_s)
