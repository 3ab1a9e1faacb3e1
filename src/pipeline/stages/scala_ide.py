# src/pipeline/stages/scala_ide.py — v1
"""Scala IDE stage: the core update site, signed for releases."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from uberbuild.cache.fingerprint import scala_ide_fingerprint
from uberbuild.pipeline.stage_kit.base_stage import CachedStage, require_signer
from uberbuild.pipeline.stage_kit.sources import SCALA_IDE_SOURCE, fetch_source
from uberbuild.pipeline.stages.toolchain import toolchain_build_properties, toolchain_profiles

if TYPE_CHECKING:
    from uberbuild.cache.models import Fingerprint
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox

BUILD_SCRIPT = "./build-all.sh"
UPDATE_SITE_PROJECT = "org.scala-ide.sdt.update-site"


class ScalaIdeStage(CachedStage):
    @property
    def name(self) -> str:
        return "scala-ide"

    @property
    def description(self) -> str:
        return "Scala IDE"

    @property
    def dependencies(self) -> list[str]:
        return ["toolchain", "scala-refactoring", "scalariform"]

    async def resolve_source(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> str:
        return await fetch_source(SCALA_IDE_SOURCE, context, ledger, tools)

    def fingerprint(self, context: BuildContext, ledger: BuildLedger) -> Fingerprint:
        return scala_ide_fingerprint(
            self.own_revision(ledger),
            ledger.revision_of("scala"),
            ledger.revision_of("zinc"),
            ledger.revision_of("scala-refactoring"),
            ledger.revision_of("scalariform"),
            signed=context.sign_artifacts,
        )

    async def build(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> Path:
        ide_dir = SCALA_IDE_SOURCE.local_dir(context)
        properties = {
            **toolchain_build_properties(context),
            "version.tag": context.settings.version_tag,
            "repo.scala-refactoring": f"file://{ledger.location_of('scala-refactoring')}",
            "repo.scalariform": f"file://{ledger.location_of('scalariform')}",
        }
        # The manifest tooling cannot read long snapshot versions, so the
        # bundle versions are only rewritten for releases.
        env = {"SET_VERSIONS": "true"} if context.release else None
        await tools.maven.run_script(
            ide_dir,
            BUILD_SCRIPT,
            ["clean", "install"],
            profiles=toolchain_profiles(context),
            properties=properties,
            env=env,
        )

        update_site = ide_dir / UPDATE_SITE_PROJECT
        if context.sign_artifacts:
            await require_signer(tools).sign(update_site)
        return update_site / "target" / "site"
