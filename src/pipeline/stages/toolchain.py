# src/pipeline/stages/toolchain.py — v1
"""Toolchain stage: OSGi-wrapped Scala compiler and Zinc bundles, as a p2 update site."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from uberbuild.cache.fingerprint import toolchain_fingerprint
from uberbuild.pipeline.stage_kit.base_stage import CachedStage
from uberbuild.pipeline.stage_kit.sources import SCALA_IDE_SOURCE, fetch_source

if TYPE_CHECKING:
    from uberbuild.cache.models import Fingerprint
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox

BUILD_TOOLCHAIN_PROJECT = "org.scala-ide.build-toolchain"
TOOLCHAIN_UPDATE_SITE_PROJECT = "org.scala-ide.toolchain.update-site"
TOOLCHAIN_SITE = Path("org.scala-ide.scala.update-site") / "target" / "site"


def toolchain_build_properties(context: BuildContext) -> dict[str, str]:
    return {
        "scala.version": context.full_scala_version,
        "sbt.version": context.settings.sbt_version,
        "sbt.ide.version": context.full_sbt_version,
    }


def toolchain_profiles(context: BuildContext) -> list[str]:
    return [context.eclipse_profile, context.scala_profile, "sbt-new"]


class ToolchainStage(CachedStage):
    @property
    def name(self) -> str:
        return "toolchain"

    @property
    def description(self) -> str:
        return "Build toolchain"

    @property
    def dependencies(self) -> list[str]:
        return ["scala", "zinc"]

    async def resolve_source(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> str:
        return await fetch_source(SCALA_IDE_SOURCE, context, ledger, tools)

    def fingerprint(self, context: BuildContext, ledger: BuildLedger) -> Fingerprint:
        return toolchain_fingerprint(
            self.own_revision(ledger),
            ledger.revision_of("scala"),
            ledger.revision_of("zinc"),
        )

    async def build(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> Path:
        ide_dir = SCALA_IDE_SOURCE.local_dir(context)
        profiles = toolchain_profiles(context)
        properties = toolchain_build_properties(context)

        await tools.maven.run(ide_dir, ["clean", "install"], profiles, properties)
        await tools.maven.run(
            ide_dir / BUILD_TOOLCHAIN_PROJECT, ["clean", "install"], profiles, properties
        )
        update_site = ide_dir / TOOLCHAIN_UPDATE_SITE_PROJECT
        await tools.maven.run(update_site, ["clean", "verify"], profiles, properties)

        # The IDE build expects the toolchain site one level down, under a
        # name carrying the Scala line.
        fake_site = context.stage_tmp(self.name) / "fakeSite"
        shutil.copytree(
            update_site / TOOLCHAIN_SITE,
            fake_site / f"scala-eclipse-toolchain-osgi-{context.scala_repo_suffix}",
        )
        return fake_site
