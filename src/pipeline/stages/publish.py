# src/pipeline/stages/publish.py — v1
"""Publish stage: archive the cached update sites and upload them to the download server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from uberbuild.pipeline.ledger import StageRecord, StageStatus
from uberbuild.pipeline.stage_kit.base_stage import BaseStage
from uberbuild.tools.process import BuildError
from uberbuild.tools.publish import Publisher

if TYPE_CHECKING:
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)


def remote_directory(root: str, build_type: str, stage: str, version_tag: str) -> str:
    return "/".join([root.rstrip("/"), build_type, stage, version_tag])


class PublishStage(BaseStage):
    def __init__(self, artifacts: tuple[str, ...]) -> None:
        self._artifacts = tuple(artifacts)

    @property
    def name(self) -> str:
        return "publish"

    @property
    def description(self) -> str:
        return "Publish"

    @property
    def dependencies(self) -> list[str]:
        return list(self._artifacts)

    async def execute(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> StageRecord:
        settings = context.settings
        if not context.dry_run and tools.publisher is None:
            raise BuildError("Publishing requested but no publisher is configured")

        staging = context.stage_tmp(self.name)
        for stage in self._artifacts:
            archive = Publisher.package(
                ledger.location_of(stage), staging / f"{stage}-{settings.version_tag}"
            )
            remote_dir = remote_directory(
                settings.publish_root, settings.build_type, stage, settings.version_tag
            )
            if context.dry_run:
                logger.info(
                    "Dry run: skipping upload of %s to %s:%s",
                    archive.name,
                    settings.publish_host,
                    remote_dir,
                )
                continue
            destination = await tools.publisher.upload(archive, remote_dir)
            ledger.published.append(f"{settings.publish_host}:{destination}")

        return ledger.advance(self.name, StageStatus.DONE)
