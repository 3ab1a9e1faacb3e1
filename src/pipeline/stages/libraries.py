# src/pipeline/stages/libraries.py — v1
"""Auxiliary library stages (scala-refactoring, scalariform), built against the toolchain."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from uberbuild.cache.fingerprint import library_fingerprint
from uberbuild.pipeline.stage_kit.base_stage import CachedStage
from uberbuild.pipeline.stage_kit.sources import SCALA_IDE_SOURCE, SourceSpec, fetch_source

if TYPE_CHECKING:
    from uberbuild.cache.models import Fingerprint
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox


@dataclass(frozen=True)
class LibraryDefinition:
    name: str
    source: SourceSpec
    update_site: str
    description: str = ""


SCALA_REFACTORING = LibraryDefinition(
    name="scala-refactoring",
    source=SourceSpec(
        "scala-refactoring",
        "scala_refactoring_dir",
        "scala_refactoring_git_repo",
        "scala_refactoring_git_branch",
    ),
    update_site="org.scala-refactoring.update-site/target/site",
    description="Scala Refactoring",
)

SCALARIFORM = LibraryDefinition(
    name="scalariform",
    source=SourceSpec(
        "scalariform", "scalariform_dir", "scalariform_git_repo", "scalariform_git_branch"
    ),
    update_site="scalariform.update/target/site",
    description="Scalariform",
)


class LibraryStage(CachedStage):
    """One auxiliary library; its key ties it to the IDE sources and the Scala identity."""

    def __init__(self, definition: LibraryDefinition) -> None:
        self._definition = definition

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def description(self) -> str:
        return self._definition.description or self.name

    @property
    def dependencies(self) -> list[str]:
        return ["toolchain"]

    async def resolve_source(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> str:
        return await fetch_source(self._definition.source, context, ledger, tools)

    def fingerprint(self, context: BuildContext, ledger: BuildLedger) -> Fingerprint:
        return library_fingerprint(
            self.name,
            self.own_revision(ledger),
            ledger.source_revision(SCALA_IDE_SOURCE.key),
            ledger.revision_of("scala"),
        )

    async def build(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> Path:
        source_dir = self._definition.source.local_dir(context)
        await tools.maven.run(
            source_dir,
            ["clean", "verify"],
            profiles=[context.scala_profile],
            properties={
                "scala.version": context.full_scala_version,
                "repo.scala-ide": f"file://{ledger.location_of('toolchain')}",
                "git.hash": self.own_revision(ledger),
            },
        )
        return source_dir / self._definition.update_site
