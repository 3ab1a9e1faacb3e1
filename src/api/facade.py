# src/api/facade.py — v2
"""Public API facade: single entry point for a build run.

Usage:
    from uberbuild.api.facade import run_build
    result = await run_build(load_settings("release.conf"))
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from uberbuild.logging.context import clear_context, set_run_context
from uberbuild.pipeline.context import BuildContext
from uberbuild.pipeline.dag_builder import build_dag
from uberbuild.pipeline.ledger import BuildLedger
from uberbuild.pipeline.prerequisites import check_prerequisites
from uberbuild.pipeline.registry import StageRegistry
from uberbuild.pipeline.runner import PipelineRunner, RunResult
from uberbuild.tools.toolbox import create_toolbox

if TYPE_CHECKING:
    from uberbuild.config.settings import Settings
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)


async def run_build(
    settings: Settings,
    tools: Toolbox | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> RunResult:
    """Run the whole pipeline for validated settings.

      1. Derive the build context and a scratch directory for the run
      2. Purge temp entries left in the cache by interrupted runs
      3. Check prerequisites (executables, Java, keystore)
      4. Plan the stage DAG and run it, fail-fast
      5. Write the ledger report to BUILD_DIR, whatever the outcome

    Args:
        settings: Loaded settings (see load_settings).
        tools: Tool clients and cache store. None = production clients.
        which: Executable lookup used by the prerequisite checks.

    Returns:
        RunResult with the ledger and cache statistics.

    Raises:
        ConfigurationError: If a derived setting is not supported.
        Exception: The first stage or prerequisite failure.
    """
    tmp_dir = Path(tempfile.mkdtemp(prefix="uber-build."))
    try:
        context = BuildContext.from_settings(settings, tmp_dir=tmp_dir)
        set_run_context(context.run_id, context.operation)
        logger.info(
            "Starting build: run_id=%s, operation=%s, scala=%s",
            context.run_id,
            context.operation,
            context.full_scala_version,
        )
        context.build_dir.mkdir(parents=True, exist_ok=True)
        if tools is None:
            tools = create_toolbox(context)

        purged = await tools.cache.purge_temp()
        if purged:
            logger.info("Purged %d abandoned cache temp entries", purged)

        await check_prerequisites(context, tools, which=which)

        registry = StageRegistry.from_context(context)
        plan = build_dag(registry.dependency_map())
        ledger = BuildLedger(run_id=context.run_id, operation=context.operation)
        try:
            return await PipelineRunner(registry, plan).run(context, ledger, tools)
        finally:
            report = ledger.write_report(context.report_path)
            logger.info("Build report written to %s", report)
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        clear_context()
