# src/pipeline/stages/zinc.py — v1
"""Zinc stage: make the sbt incremental compiler for the chosen Scala available."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from uberbuild.pipeline.ledger import StageRecord, StageStatus
from uberbuild.pipeline.stage_kit.base_stage import BaseStage
from uberbuild.pipeline.stage_kit.sources import ZINC_BUILD_SOURCE, fetch_source
from uberbuild.tools.process import run_command

if TYPE_CHECKING:
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)

SBT_GROUP = "com.typesafe.sbt"
INCREMENTAL_COMPILER = "incremental-compiler"


class ZincStage(BaseStage):
    @property
    def name(self) -> str:
        return "zinc"

    @property
    def description(self) -> str:
        return "Zinc incremental compiler"

    @property
    def dependencies(self) -> list[str]:
        return ["scala"]

    async def execute(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> StageRecord:
        version = context.full_sbt_version
        if context.validator:
            if not await tools.maven.is_available(SBT_GROUP, INCREMENTAL_COMPILER, version):
                logger.info("Building Zinc using dbuild")
                await self._dbuild(context, ledger, tools)
                await tools.maven.check_needed(SBT_GROUP, INCREMENTAL_COMPILER, version)
        else:
            await tools.maven.check_needed(
                SBT_GROUP, INCREMENTAL_COMPILER, version, extra_repo=context.ide_m2_repo
            )
        ledger.advance(self.name, StageStatus.SOURCE_RESOLVED, revision=version)
        return ledger.advance(self.name, StageStatus.DONE)

    async def _dbuild(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> None:
        await fetch_source(ZINC_BUILD_SOURCE, context, ledger, tools)
        local_repo = str(context.local_m2_repo)
        await run_command(
            ["bin/dbuild", f"sbt-on-{context.short_scala_version}.x"],
            cwd=ZINC_BUILD_SOURCE.local_dir(context),
            env={
                "SCALA_VERSION": context.full_scala_version,
                "PUBLISH_REPO": f"file://{local_repo}",
                "LOCAL_M2_REPO": local_repo,
            },
            timeout_s=context.timeout_s,
        )
