# src/pipeline/stages/product.py — v1
"""Product stage: the Scala IDE repository with every enabled plugin merged in."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from uberbuild.cache.fingerprint import product_fingerprint
from uberbuild.pipeline.stage_kit.base_stage import CachedStage
from uberbuild.pipeline.stage_kit.sources import PRODUCT_SOURCE, fetch_source

if TYPE_CHECKING:
    from uberbuild.cache.models import Fingerprint
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)

PRODUCT_OUTPUT = Path("org.scala-ide.product") / "target" / "repository"


def merge_repositories(base: Path, plugins: dict[str, Path], dest: Path) -> Path:
    """Copy base into dest and each plugin repository under ``dest/plugins/<name>``."""
    shutil.copytree(base, dest, symlinks=True)
    for name, location in plugins.items():
        shutil.copytree(location, dest / "plugins" / name, symlinks=True)
    return dest


class ProductStage(CachedStage):
    def __init__(self, plugins: tuple[str, ...] = ()) -> None:
        self._plugins = tuple(plugins)

    @property
    def name(self) -> str:
        return "product"

    @property
    def description(self) -> str:
        return "Scala IDE product"

    @property
    def dependencies(self) -> list[str]:
        return ["scala-ide", *self._plugins]

    async def resolve_source(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> str:
        return await fetch_source(PRODUCT_SOURCE, context, ledger, tools)

    def fingerprint(self, context: BuildContext, ledger: BuildLedger) -> Fingerprint:
        return product_fingerprint(
            self.own_revision(ledger),
            ledger.fingerprint_of("scala-ide"),
            [(name, ledger.revision_of(name)) for name in self._plugins],
            signed=context.sign_artifacts,
        )

    async def build(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> Path:
        merged = merge_repositories(
            ledger.location_of("scala-ide"),
            {name: ledger.location_of(name) for name in self._plugins},
            context.stage_tmp(self.name) / "repository",
        )
        logger.info("Merged %d plugin(s) into %s", len(self._plugins), merged)

        product_dir = PRODUCT_SOURCE.local_dir(context)
        await tools.maven.run(
            product_dir,
            ["clean", "verify"],
            profiles=[context.eclipse_profile, context.scala_profile],
            properties={
                "scala.version": context.full_scala_version,
                "version.tag": context.settings.version_tag,
                "repo.scala-ide.root": f"file://{merged}",
            },
        )
        return product_dir / PRODUCT_OUTPUT
