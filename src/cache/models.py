# src/cache/models.py — v2
"""Cache domain models: FingerprintComponent and Fingerprint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

SEPARATOR = "/"


class FingerprintComponent(BaseModel):
    """One positional input of a fingerprint.

    The label only documents the slot (e.g. "scala", "sbt"); the key is built
    from values alone.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    value: str


class Fingerprint(BaseModel):
    """Composite cache key of a stage: its name followed by ordered components."""

    model_config = ConfigDict(frozen=True)

    stage: str
    components: tuple[FingerprintComponent, ...] = ()

    @property
    def segments(self) -> list[str]:
        """Key segments in order; each one becomes a directory level in the cache."""
        return [self.stage, *(c.value for c in self.components)]

    @property
    def key(self) -> str:
        return SEPARATOR.join(self.segments)

    def __str__(self) -> str:
        return self.key
