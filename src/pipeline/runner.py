# src/pipeline/runner.py — v2
"""Pipeline runner: execute the stage DAG against the build ledger.

Walks the ExecutionPlan level by level and stage by stage, calling each
stage's execute() with the shared context, ledger and toolbox. Execution is
sequential and fail-fast: the first failing stage is marked FAILED in the
ledger and its exception propagates.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from uberbuild.logging.context import set_stage_context
from uberbuild.pipeline.dag_builder import ExecutionPlan
from uberbuild.pipeline.ledger import BuildLedger

if TYPE_CHECKING:
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.pipeline.registry import StageRegistry
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of a full build run."""

    ledger: BuildLedger
    success: bool = True
    cache_hits: list[str] = field(default_factory=list)
    cache_misses: list[str] = field(default_factory=list)
    duration_ms: int = 0
    stages_completed: int = 0


class PipelineRunner:
    """Execute a stage DAG.

    Args:
        registry: StageRegistry holding every stage of the plan.
        plan: ExecutionPlan from build_dag.
    """

    def __init__(self, registry: StageRegistry, plan: ExecutionPlan) -> None:
        self._registry = registry
        self._plan = plan

    async def run(
        self, context: BuildContext, ledger: BuildLedger, tools: Toolbox
    ) -> RunResult:
        """Execute all stages in DAG order.

        Returns:
            RunResult with the ledger and cache statistics.

        Raises:
            Exception: Whatever the failing stage raised, after it is marked FAILED.
        """
        start_ns = time.monotonic_ns()
        result = RunResult(ledger=ledger)
        order = self._plan.flat_order

        for index, name in enumerate(order):
            stage = self._registry.get_or_raise(name)
            set_stage_context(name)
            logger.info(">>>>> %s (%d/%d)", stage.description, index + 1, len(order))
            try:
                await stage.execute(context, ledger, tools)
            except Exception as exc:
                logger.debug("Stage '%s' failed: %s", name, exc)
                ledger.fail(name, exc)
                raise
            finally:
                set_stage_context(None)
            result.stages_completed += 1

        result.cache_hits = ledger.cache_hits
        result.cache_misses = ledger.cache_misses
        result.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        logger.info(
            ">>>>> Build successful: %d stages, %d cache hits, %d built, %dms",
            result.stages_completed,
            len(result.cache_hits),
            len(result.cache_misses),
            result.duration_ms,
        )
        return result
