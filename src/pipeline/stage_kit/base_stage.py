# src/pipeline/stage_kit/base_stage.py — v1
"""Standard stage interface and the cached-stage template."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from uberbuild.logging.context import set_stage_context
from uberbuild.pipeline.ledger import LedgerError, StageRecord, StageStatus
from uberbuild.tools.process import BuildError

if TYPE_CHECKING:
    from uberbuild.cache.models import Fingerprint
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.ledger import BuildLedger
    from uberbuild.tools.signing import KeystoreSigner
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)


class BaseStage(ABC):
    """Standard interface for all build stages."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique stage identifier (e.g., 'toolchain', 'worksheet')."""

    @property
    def description(self) -> str:
        return self.name

    @property
    def dependencies(self) -> list[str]:
        """List of stage names that must complete before this one."""
        return []

    @abstractmethod
    async def execute(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> StageRecord:
        """Run the stage and leave its ledger record in DONE.

        Args:
            context: Immutable run configuration.
            ledger: Mutable run record; read dependencies from it, write own results.
            tools: External tool clients and the cache store.

        Returns:
            The stage's final StageRecord.
        """


class CachedStage(BaseStage):
    """Stage whose output is a directory stored in the build cache.

    Subclasses provide the three variable steps; execute() strings them
    together: resolve the source revision, derive the fingerprint, then
    either reuse the cache entry or build and store a new one.
    """

    def own_revision(self, ledger: BuildLedger) -> str:
        """Revision this stage resolved earlier in execute()."""
        revision = ledger.record(self.name).revision
        if revision is None:
            raise LedgerError(f"Stage '{self.name}' has not resolved its source")
        return revision

    @abstractmethod
    async def resolve_source(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> str:
        """Bring the stage's sources to the configured revision and return its identity."""

    @abstractmethod
    def fingerprint(self, context: BuildContext, ledger: BuildLedger) -> Fingerprint:
        """Fingerprint of the output, from this stage's revision and its dependencies'."""

    @abstractmethod
    async def build(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> Path:
        """Build the stage and return the directory to store in the cache."""

    async def execute(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> StageRecord:
        revision = await self.resolve_source(context, ledger, tools)
        ledger.advance(self.name, StageStatus.SOURCE_RESOLVED, revision=revision)

        fp = self.fingerprint(context, ledger)
        set_stage_context(self.name, fp.key)
        location = tools.cache.location_of(fp)
        ledger.advance(
            self.name,
            StageStatus.FINGERPRINT_COMPUTED,
            fingerprint=fp,
            location=str(location),
        )

        force = context.settings.cache_force_rebuild
        if not force and await tools.cache.exists(fp):
            logger.info("%s found in cache, skipping build", fp.key)
            ledger.advance(self.name, StageStatus.CACHE_HIT, cache_hit=True)
            return ledger.advance(self.name, StageStatus.DONE)

        if force:
            logger.info("Rebuilding %s (forced)", fp.key)
        else:
            logger.info("%s not in cache, building", fp.key)
        ledger.advance(self.name, StageStatus.CACHE_MISS, cache_hit=False)
        ledger.advance(self.name, StageStatus.BUILDING)
        output_dir = await self.build(context, ledger, tools)
        ledger.advance(self.name, StageStatus.BUILT)

        await tools.cache.store(fp, output_dir, overwrite=force)
        ledger.advance(self.name, StageStatus.CACHED)
        return ledger.advance(self.name, StageStatus.DONE)


def require_signer(tools: Toolbox) -> KeystoreSigner:
    if tools.signer is None:
        raise BuildError("Signing requested but no keystore signer is configured")
    return tools.signer
