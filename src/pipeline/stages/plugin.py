# src/pipeline/stages/plugin.py — v1
"""Plugin stages: one per enabled plugin, built against the cached Scala IDE site."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from uberbuild.cache.fingerprint import plugin_fingerprint
from uberbuild.config.plugins import PluginDefinition
from uberbuild.pipeline.stage_kit.base_stage import CachedStage, require_signer
from uberbuild.pipeline.stage_kit.sources import SourceSpec, fetch_source

if TYPE_CHECKING:
    from uberbuild.cache.models import Fingerprint
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox


class PluginStage(CachedStage):
    def __init__(self, definition: PluginDefinition) -> None:
        self._definition = definition
        self._source = SourceSpec(
            definition.name,
            definition.dir_setting,
            definition.repo_setting,
            definition.branch_setting,
        )

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def description(self) -> str:
        return self._definition.description or self.name

    @property
    def dependencies(self) -> list[str]:
        return ["scala-ide"]

    @property
    def update_site_project(self) -> str:
        """Maven module producing the update site (the part before ``/target``)."""
        return self._definition.update_site.split("/target", 1)[0]

    async def resolve_source(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> str:
        return await fetch_source(self._source, context, ledger, tools)

    def fingerprint(self, context: BuildContext, ledger: BuildLedger) -> Fingerprint:
        return plugin_fingerprint(
            self.name,
            self.own_revision(ledger),
            ledger.fingerprint_of("scala-ide"),
            signed=context.sign_artifacts,
        )

    async def build(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> Path:
        plugin_dir = self._source.local_dir(context)
        await tools.maven.run(
            plugin_dir,
            ["clean", "verify"],
            profiles=[context.eclipse_profile, context.scala_profile],
            properties={
                "scala.version": context.full_scala_version,
                "version.tag": context.settings.version_tag,
                "repo.scala-ide": f"file://{ledger.location_of('scala-ide')}",
                "git.hash": self.own_revision(ledger),
            },
        )
        if context.sign_artifacts:
            await require_signer(tools).sign(plugin_dir / self.update_site_project)
        return plugin_dir / self._definition.update_site
