# src/pipeline/ledger.py — v1
"""Mutable build ledger flowing through all stages.

Records, for each stage, its progress through the stage state machine and
what later stages need from it: the resolved revision identity, the
fingerprint and the cache location of its output. Also remembers which
working copies were already fetched during the run, so each source is
fetched once.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from uberbuild.cache.models import Fingerprint


class LedgerError(Exception):
    """Raised on an illegal state transition or a read of an unresolved stage."""


class StageStatus(str, Enum):
    NOT_STARTED = "not_started"
    SOURCE_RESOLVED = "source_resolved"
    FINGERPRINT_COMPUTED = "fingerprint_computed"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    BUILDING = "building"
    BUILT = "built"
    CACHED = "cached"
    DONE = "done"
    FAILED = "failed"


# Stages without a cache decision (scala, zinc, publish) take the short paths
# through SOURCE_RESOLVED or straight to DONE.
ALLOWED_TRANSITIONS: dict[StageStatus, frozenset[StageStatus]] = {
    StageStatus.NOT_STARTED: frozenset({StageStatus.SOURCE_RESOLVED, StageStatus.DONE}),
    StageStatus.SOURCE_RESOLVED: frozenset(
        {StageStatus.FINGERPRINT_COMPUTED, StageStatus.DONE}
    ),
    StageStatus.FINGERPRINT_COMPUTED: frozenset(
        {StageStatus.CACHE_HIT, StageStatus.CACHE_MISS}
    ),
    StageStatus.CACHE_HIT: frozenset({StageStatus.DONE}),
    StageStatus.CACHE_MISS: frozenset({StageStatus.BUILDING}),
    StageStatus.BUILDING: frozenset({StageStatus.BUILT}),
    StageStatus.BUILT: frozenset({StageStatus.CACHED}),
    StageStatus.CACHED: frozenset({StageStatus.DONE}),
    StageStatus.DONE: frozenset(),
    StageStatus.FAILED: frozenset(),
}


class StageRecord(BaseModel):
    """What the run knows about one stage."""

    name: str
    status: StageStatus = StageStatus.NOT_STARTED
    revision: str | None = None
    fingerprint: Fingerprint | None = None
    location: str | None = None
    cache_hit: bool | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None


class BuildLedger(BaseModel):
    """Per-run record of every stage, passed by reference from stage to stage."""

    run_id: str
    operation: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    stages: dict[str, StageRecord] = Field(default_factory=dict)
    sources: dict[str, str] = Field(default_factory=dict)
    published: list[str] = Field(default_factory=list)

    def record(self, name: str) -> StageRecord:
        """Return the stage's record, creating it on first access."""
        if name not in self.stages:
            self.stages[name] = StageRecord(name=name)
        return self.stages[name]

    def advance(self, name: str, status: StageStatus, **fields: object) -> StageRecord:
        """Move a stage to status, updating any record fields passed along.

        Raises:
            LedgerError: If the transition is not allowed from the current status.
        """
        record = self.record(name)
        if status is StageStatus.FAILED:
            if record.status in (StageStatus.DONE, StageStatus.FAILED):
                raise LedgerError(f"Stage '{name}' already finished as {record.status.value}")
        elif status not in ALLOWED_TRANSITIONS[record.status]:
            raise LedgerError(
                f"Stage '{name}' cannot go from {record.status.value} to {status.value}"
            )

        now = datetime.now(timezone.utc)
        if record.started_at is None:
            record.started_at = now
        for key, value in fields.items():
            if key not in StageRecord.model_fields:
                raise LedgerError(f"Unknown stage record field: {key}")
            setattr(record, key, value)
        record.status = status
        if status in (StageStatus.DONE, StageStatus.FAILED):
            record.completed_at = now
        return record

    def fail(self, name: str, error: BaseException) -> StageRecord:
        return self.advance(name, StageStatus.FAILED, error=f"{type(error).__name__}: {error}")

    # --- Reads used by downstream stages ---

    def _finished(self, name: str) -> StageRecord:
        record = self.stages.get(name)
        if record is None or record.status is not StageStatus.DONE:
            raise LedgerError(f"Stage '{name}' has not completed")
        return record

    def revision_of(self, name: str) -> str:
        record = self._finished(name)
        if record.revision is None:
            raise LedgerError(f"Stage '{name}' has no revision identity")
        return record.revision

    def fingerprint_of(self, name: str) -> Fingerprint:
        record = self._finished(name)
        if record.fingerprint is None:
            raise LedgerError(f"Stage '{name}' has no fingerprint")
        return record.fingerprint

    def location_of(self, name: str) -> Path:
        record = self._finished(name)
        if record.location is None:
            raise LedgerError(f"Stage '{name}' has no cached output")
        return Path(record.location)

    def source_revision(self, key: str) -> str:
        if key not in self.sources:
            raise LedgerError(f"Source '{key}' has not been fetched")
        return self.sources[key]

    # --- Stats ---

    @property
    def cache_hits(self) -> list[str]:
        return [n for n, r in self.stages.items() if r.cache_hit is True]

    @property
    def cache_misses(self) -> list[str]:
        return [n for n, r in self.stages.items() if r.cache_hit is False]

    def write_report(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path
