# src/logging/context.py — v2
"""Contextual logging support: attach run_id, operation, stage and fingerprint to records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per build run.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
# Set per stage.
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)
_fingerprint: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "fingerprint", default=None
)


@dataclass
class LogContext:
    """Snapshot of the current logging context."""

    run_id: str | None = None
    operation: str | None = None
    stage: str | None = None
    fingerprint: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    return LogContext(
        run_id=_run_id.get(),
        operation=_operation.get(),
        stage=_stage.get(),
        fingerprint=_fingerprint.get(),
    )


def set_run_context(run_id: str, operation: str) -> None:
    """Set run-level context (called once per build run)."""
    _run_id.set(run_id)
    _operation.set(operation)


def set_stage_context(stage: str | None, fingerprint: str | None = None) -> None:
    """Set stage-level context (called when a stage starts, again once its key is known)."""
    _stage.set(stage)
    _fingerprint.set(fingerprint)


def clear_context() -> None:
    _run_id.set(None)
    _operation.set(None)
    _stage.set(None)
    _fingerprint.set(None)
