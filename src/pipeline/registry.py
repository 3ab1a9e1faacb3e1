# src/pipeline/registry.py — v2
"""Stage registry: the set of stages a configured run executes.

The core stages always run. Plugin stages follow the PLUGINS setting in
plugin registry order, and the product and publish stages are added when
their toggles are on.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from uberbuild.config.plugins import PLUGIN_REGISTRY
from uberbuild.pipeline.stage_kit.base_stage import BaseStage
from uberbuild.pipeline.stages.libraries import SCALA_REFACTORING, SCALARIFORM, LibraryStage
from uberbuild.pipeline.stages.plugin import PluginStage
from uberbuild.pipeline.stages.product import ProductStage
from uberbuild.pipeline.stages.publish import PublishStage
from uberbuild.pipeline.stages.scala import ScalaStage
from uberbuild.pipeline.stages.scala_ide import ScalaIdeStage
from uberbuild.pipeline.stages.toolchain import ToolchainStage
from uberbuild.pipeline.stages.zinc import ZincStage

if TYPE_CHECKING:
    from uberbuild.pipeline.context import BuildContext

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when a stage lookup fails."""


class StageRegistry:
    """Registry of the stages of one run, keyed by name."""

    def __init__(self) -> None:
        self._stages: dict[str, BaseStage] = {}

    @classmethod
    def from_context(cls, context: BuildContext) -> StageRegistry:
        registry = cls()
        for stage in (
            ScalaStage(),
            ZincStage(),
            ToolchainStage(),
            LibraryStage(SCALA_REFACTORING),
            LibraryStage(SCALARIFORM),
            ScalaIdeStage(),
        ):
            registry.register(stage)

        plugins = tuple(p for p in context.enabled_plugins if p in PLUGIN_REGISTRY)
        for name in plugins:
            registry.register(PluginStage(PLUGIN_REGISTRY[name]))

        artifacts = ["scala-ide", *plugins]
        if context.settings.product:
            registry.register(ProductStage(plugins))
            artifacts.append("product")
        if context.settings.publish:
            registry.register(PublishStage(tuple(artifacts)))

        logger.info("Registry loaded %d stages", len(registry.stage_names))
        return registry

    @property
    def stage_names(self) -> list[str]:
        """Return sorted list of registered stage names."""
        return sorted(self._stages)

    def register(self, stage: BaseStage) -> None:
        """Manually register a stage instance."""
        if stage.name in self._stages:
            logger.warning("Overwriting existing stage: %s", stage.name)
        self._stages[stage.name] = stage

    def get_or_raise(self, name: str) -> BaseStage:
        stage = self._stages.get(name)
        if stage is None:
            raise RegistryError(f"Stage '{name}' not found in registry")
        return stage

    def dependency_map(self) -> dict[str, list[str]]:
        """Return stage_name -> list of dependency names."""
        return {name: list(stage.dependencies) for name, stage in self._stages.items()}
