# src/pipeline/stage_kit/sources.py — v1
"""Working-copy resolution shared by stages that build from git sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceSpec:
    """Where a project's sources live: the settings naming dir, repository and branch."""

    key: str
    dir_setting: str
    repo_setting: str
    branch_setting: str
    extra_fetch: str | None = None

    def local_dir(self, context: BuildContext) -> Path:
        return context.path_setting(self.dir_setting)


SCALA_IDE_SOURCE = SourceSpec(
    "scala-ide", "scala_ide_dir", "scala_ide_git_repo", "scala_ide_git_branch"
)
SCALA_SOURCE = SourceSpec(
    "scala", "scala_dir", "scala_git_repo", "scala_git_hash", extra_fetch="pr"
)
ZINC_BUILD_SOURCE = SourceSpec(
    "zinc-build", "zinc_build_dir", "zinc_build_git_repo", "zinc_build_git_branch"
)
PRODUCT_SOURCE = SourceSpec(
    "product", "product_dir", "product_git_repo", "product_git_branch"
)


async def fetch_source(
    spec: SourceSpec, context: BuildContext, ledger: BuildLedger, tools: Toolbox
) -> str:
    """Fetch the working copy once per run and return its commit hash.

    Later calls for the same key reuse the revision recorded in the ledger.
    """
    if spec.key in ledger.sources:
        return ledger.sources[spec.key]
    settings = context.settings
    revision = await tools.git.fetch_branch(
        spec.local_dir(context),
        getattr(settings, spec.repo_setting),
        getattr(settings, spec.branch_setting),
        extra_fetch=spec.extra_fetch,
    )
    ledger.sources[spec.key] = revision
    logger.debug("%s at %s", spec.key, revision)
    return revision
