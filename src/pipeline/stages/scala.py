# src/pipeline/stages/scala.py — v1
"""Scala stage: make the Scala compiler available and establish its identity.

Release builds require a published compiler and identify it by the OSGi
Bundle-Version of its jar. Validator builds need a snapshot of a given
commit: it is used if already resolvable, otherwise deployed from the
prebuilt nightly distribution, otherwise built from source. The commit hash
is the identity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from uberbuild.pipeline.ledger import StageRecord, StageStatus
from uberbuild.pipeline.stage_kit.base_stage import BaseStage
from uberbuild.pipeline.stage_kit.sources import SCALA_SOURCE, fetch_source
from uberbuild.tools.download import extract_tarball

if TYPE_CHECKING:
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)

SCALA_GROUP = "org.scala-lang"
SCALA_COMPILER = "scala-compiler"


class ScalaStage(BaseStage):
    @property
    def name(self) -> str:
        return "scala"

    @property
    def description(self) -> str:
        return "Scala compiler"

    async def execute(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> StageRecord:
        if context.validator:
            uid = await self._validator_scala(context, ledger, tools)
        else:
            uid = await self._release_scala(context, tools)
        logger.info("Scala %s, identity %s", context.full_scala_version, uid)
        ledger.advance(self.name, StageStatus.SOURCE_RESOLVED, revision=uid)
        return ledger.advance(self.name, StageStatus.DONE)

    async def _release_scala(self, context: BuildContext, tools: Toolbox) -> str:
        version = context.full_scala_version
        await tools.maven.check_needed(SCALA_GROUP, SCALA_COMPILER, version)
        return tools.maven.osgi_version(SCALA_GROUP, SCALA_COMPILER, version)

    async def _validator_scala(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> str:
        settings = context.settings
        version = context.full_scala_version
        if await tools.maven.is_available(SCALA_GROUP, SCALA_COMPILER, version):
            return settings.scala_git_hash

        artifacts_url = f"{settings.scala_webapps_url.rstrip('/')}/{settings.scala_git_hash}/"
        if await tools.downloader.is_available(artifacts_url):
            logger.info("Deploying Scala version from scala-webapps")
            await self._deploy_nightly(context, tools, artifacts_url)
        else:
            logger.info("Building Scala from source")
            await self._build_from_source(context, ledger, tools)

        await tools.maven.check_needed(SCALA_GROUP, SCALA_COMPILER, version)
        return settings.scala_git_hash

    async def _deploy_nightly(
        self, context: BuildContext, tools: Toolbox, artifacts_url: str
    ) -> None:
        work_dir = context.stage_tmp("scala-nightly")
        archive = await tools.downloader.download(
            f"{artifacts_url}maven.tgz", work_dir / "maven.tgz"
        )
        extract_tarball(archive, work_dir)
        await tools.ant.run(
            work_dir / "latest",
            ["deploy.local"],
            properties={
                "maven.version.number": context.full_scala_version,
                "local.snapshot.repository": str(context.local_m2_repo),
                "maven.version.suffix": context.scala_version_suffix,
            },
        )

    async def _build_from_source(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> None:
        await fetch_source(SCALA_SOURCE, context, ledger, tools)
        scala_dir = SCALA_SOURCE.local_dir(context)
        local_repo = str(context.local_m2_repo)

        await tools.ant.run(
            scala_dir, ["all.clean"], properties={"ivy.cache.ttl.default": "eternal"}
        )
        await tools.git.clean(scala_dir)
        await tools.ant.run(
            scala_dir,
            ["distpack-maven-opt"],
            properties={
                "archives.skipxz": "true",
                "local.snapshot.repository": local_repo,
                "version.suffix": context.scala_version_suffix,
            },
        )
        await tools.ant.run(
            scala_dir / "dists" / "maven" / "latest",
            ["deploy.local"],
            properties={
                "local.snapshot.repository": local_repo,
                "maven.version.suffix": context.scala_version_suffix,
            },
        )
