# tests/unit/pipeline/test_ledger.py — v1
"""Tests for pipeline/ledger.py — stage state machine and report."""

from __future__ import annotations

import json

import pytest

from uberbuild.cache.fingerprint import toolchain_fingerprint
from uberbuild.pipeline.ledger import BuildLedger, LedgerError, StageStatus

_HIT_PATH = [
    StageStatus.SOURCE_RESOLVED,
    StageStatus.FINGERPRINT_COMPUTED,
    StageStatus.CACHE_HIT,
    StageStatus.DONE,
]
_MISS_PATH = [
    StageStatus.SOURCE_RESOLVED,
    StageStatus.FINGERPRINT_COMPUTED,
    StageStatus.CACHE_MISS,
    StageStatus.BUILDING,
    StageStatus.BUILT,
    StageStatus.CACHED,
    StageStatus.DONE,
]


@pytest.fixture
def ledger() -> BuildLedger:
    return BuildLedger(run_id="r1", operation="release")


class TestTransitions:
    @pytest.mark.parametrize("path", [_HIT_PATH, _MISS_PATH])
    def test_cached_paths(self, ledger, path):
        for status in path:
            ledger.advance("toolchain", status)
        record = ledger.record("toolchain")
        assert record.status is StageStatus.DONE
        assert record.started_at is not None
        assert record.completed_at is not None

    def test_uncached_path(self, ledger):
        ledger.advance("scala", StageStatus.SOURCE_RESOLVED, revision="2.10.2.v2013")
        ledger.advance("scala", StageStatus.DONE)
        assert ledger.revision_of("scala") == "2.10.2.v2013"

    def test_direct_done(self, ledger):
        ledger.advance("publish", StageStatus.DONE)
        assert ledger.record("publish").status is StageStatus.DONE

    @pytest.mark.parametrize(
        "first, illegal",
        [
            ([], StageStatus.CACHE_HIT),
            ([StageStatus.SOURCE_RESOLVED], StageStatus.BUILDING),
            ([StageStatus.SOURCE_RESOLVED, StageStatus.FINGERPRINT_COMPUTED], StageStatus.DONE),
            (_HIT_PATH, StageStatus.BUILDING),
        ],
    )
    def test_illegal(self, ledger, first, illegal):
        for status in first:
            ledger.advance("s", status)
        with pytest.raises(LedgerError, match="cannot go from"):
            ledger.advance("s", illegal)

    def test_fail_from_any_running_state(self, ledger):
        ledger.advance("s", StageStatus.SOURCE_RESOLVED)
        record = ledger.fail("s", RuntimeError("mvn died"))
        assert record.status is StageStatus.FAILED
        assert record.error == "RuntimeError: mvn died"

    def test_fail_after_done_rejected(self, ledger):
        ledger.advance("s", StageStatus.DONE)
        with pytest.raises(LedgerError):
            ledger.fail("s", RuntimeError("late"))

    def test_unknown_field(self, ledger):
        with pytest.raises(LedgerError, match="Unknown stage record field"):
            ledger.advance("s", StageStatus.SOURCE_RESOLVED, colour="red")


class TestReads:
    def test_unfinished_stage(self, ledger):
        ledger.advance("scala", StageStatus.SOURCE_RESOLVED, revision="x")
        with pytest.raises(LedgerError, match="has not completed"):
            ledger.revision_of("scala")

    def test_unknown_stage(self, ledger):
        with pytest.raises(LedgerError):
            ledger.location_of("toolchain")

    def test_fingerprint_and_location(self, ledger, tmp_path):
        fp = toolchain_fingerprint("A", "B", "C")
        for status in _HIT_PATH:
            ledger.advance("toolchain", status)
        ledger.record("toolchain").fingerprint = fp
        ledger.record("toolchain").location = str(tmp_path)
        assert ledger.fingerprint_of("toolchain") == fp
        assert ledger.location_of("toolchain") == tmp_path

    def test_source_revision(self, ledger):
        ledger.sources["scala-ide"] = "abc"
        assert ledger.source_revision("scala-ide") == "abc"
        with pytest.raises(LedgerError):
            ledger.source_revision("product")


class TestStatsAndReport:
    def test_hits_and_misses(self, ledger):
        for status in _HIT_PATH:
            ledger.advance("a", status, **({"cache_hit": True} if status is StageStatus.CACHE_HIT else {}))
        for status in _MISS_PATH:
            ledger.advance("b", status, **({"cache_hit": False} if status is StageStatus.CACHE_MISS else {}))
        ledger.advance("scala", StageStatus.DONE)
        assert ledger.cache_hits == ["a"]
        assert ledger.cache_misses == ["b"]

    def test_write_report(self, ledger, tmp_path):
        ledger.advance(
            "toolchain",
            StageStatus.SOURCE_RESOLVED,
            revision="A",
        )
        ledger.advance(
            "toolchain",
            StageStatus.FINGERPRINT_COMPUTED,
            fingerprint=toolchain_fingerprint("A", "B", "C"),
        )
        path = ledger.write_report(tmp_path / "build" / "report.json")
        data = json.loads(path.read_text())
        assert data["run_id"] == "r1"
        stage = data["stages"]["toolchain"]
        assert stage["status"] == "fingerprint_computed"
        assert stage["fingerprint"]["stage"] == "toolchain"
        restored = BuildLedger.model_validate_json(path.read_text())
        assert restored.stages["toolchain"].fingerprint.key == "toolchain/A/B/C"
