# src/config/plugins.py — v1
"""Declarative registry of the optional Scala IDE plugins.

Each plugin is built against the Scala IDE update site and may be merged into
the product. The dict order is the fixed order in which enabled plugins
appear in the product fingerprint and in the product repository.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PluginDefinition:
    """Where a plugin's sources come from and where its update site is produced."""

    name: str
    settings_prefix: str
    update_site: str
    description: str = ""

    @property
    def dir_setting(self) -> str:
        return f"{self.settings_prefix}_dir"

    @property
    def repo_setting(self) -> str:
        return f"{self.settings_prefix}_git_repo"

    @property
    def branch_setting(self) -> str:
        return f"{self.settings_prefix}_git_branch"

    @property
    def required_settings(self) -> tuple[str, str, str]:
        return (self.dir_setting, self.repo_setting, self.branch_setting)


PLUGIN_REGISTRY: dict[str, PluginDefinition] = {
    "worksheet": PluginDefinition(
        name="worksheet",
        settings_prefix="worksheet",
        update_site="org.scalaide.worksheet.update-site/target/site",
        description="Scala worksheet",
    ),
    "play": PluginDefinition(
        name="play",
        settings_prefix="play",
        update_site="org.scala-ide.play2.update-site/target/site",
        description="Play 2 framework support",
    ),
    "search": PluginDefinition(
        name="search",
        settings_prefix="search",
        update_site="org.scala.tools.eclipse.search.update-site/target/site",
        description="Scala search",
    ),
    "scalatest": PluginDefinition(
        name="scalatest",
        settings_prefix="scalatest",
        update_site="org.scala-ide.sdt.scalatest.update-site/target/site",
        description="ScalaTest runner",
    ),
}
