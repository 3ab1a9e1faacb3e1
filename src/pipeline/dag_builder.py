# src/pipeline/dag_builder.py — v2
"""DAG builder: build the execution graph from stage dependencies.

Produces a topologically sorted execution plan. Detects cycles
and validates that all dependencies are resolvable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import networkx as nx

logger = logging.getLogger(__name__)


class DAGError(Exception):
    """Raised when DAG construction fails (cycle, missing dep)."""


@dataclass
class ExecutionPlan:
    """Ordered execution plan for build stages.

    stages is a list of "levels": stages within the same level have no
    mutual dependencies. Levels execute sequentially, and so do the stages
    inside a level (builds share working copies and the local repository).
    """

    stages: list[list[str]] = field(default_factory=list)
    total_stages: int = 0

    @property
    def flat_order(self) -> list[str]:
        """Return a flat topological ordering."""
        return [name for level in self.stages for name in level]


def build_dag(dependency_map: dict[str, list[str]]) -> ExecutionPlan:
    """Build an execution DAG from stage dependency declarations.

    Each level contains stages whose dependencies are fully resolved by
    previous levels. Names are sorted inside a level so the plan is
    deterministic.

    Args:
        dependency_map: stage_name -> list of dependency stage names.

    Returns:
        ExecutionPlan with staged execution order.

    Raises:
        DAGError: If a cycle is detected or a dependency is missing.
    """
    if not dependency_map:
        return ExecutionPlan()

    graph = nx.DiGraph()
    graph.add_nodes_from(dependency_map)
    for name, deps in dependency_map.items():
        for dep in deps:
            if dep not in dependency_map:
                raise DAGError(
                    f"Stage '{name}' depends on '{dep}' which is not registered"
                )
            graph.add_edge(dep, name)

    try:
        levels = [sorted(level) for level in nx.topological_generations(graph)]
    except nx.NetworkXUnfeasible as exc:
        cycle = [edge[0] for edge in nx.find_cycle(graph)]
        raise DAGError(f"Cycle detected involving stages: {cycle}") from exc

    plan = ExecutionPlan(stages=levels, total_stages=graph.number_of_nodes())
    logger.info(
        "DAG built: %d stages in %d levels → %s",
        plan.total_stages,
        len(plan.stages),
        plan.flat_order,
    )
    return plan
