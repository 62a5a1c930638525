"""Unit tests for per-stage staging snapshots."""

from __future__ import annotations

import pytest

from core.errors import MemberCleanStoreError
from core.types import MemberRecord, RecordIssue, StageOutput
from ingest.staging_store import StagingStore


def _output() -> StageOutput:
    record = MemberRecord(
        member_id=1,
        full_name="Jane Roe",
        full_address="1 A, B, C",
        source_membership_date=None,
        raw_job_title="Nurse",
        email="jane@example.com",
        phone="1",
        first_name="Jane",
        last_name="Roe",
    )
    issue = RecordIssue(member_id=1, stage="name_normalization", reason="x", severity="flagged")
    return StageOutput(records=(record,), issues=(issue,))


def test_reset_initializes_empty_state(tmp_path) -> None:
    """A new staging run should start without stages."""
    staging = StagingStore(tmp_path, "demo")

    state = staging.reset("source.csv")

    assert state.stages == () and staging.read_state().source_uri == "source.csv"


def test_save_stage_roundtrips_records_and_issues(tmp_path) -> None:
    """Staged outputs should load back per stage."""
    staging = StagingStore(tmp_path, "demo")
    state = staging.reset("source.csv")

    staging.save_stage(state, "name_normalization", _output())

    assert staging.load_stage_records("name_normalization")[0].first_name == "Jane"
    assert staging.load_stage_issues("name_normalization")[0].reason == "x"
    assert (tmp_path / "datasets" / "demo" / "staging" / "01_name_normalization.records.jsonl").exists()


def test_reset_clears_previous_stages(tmp_path) -> None:
    """Resetting should drop files from an earlier run."""
    staging = StagingStore(tmp_path, "demo")
    staging.save_stage(staging.reset("a.csv"), "name_normalization", _output())

    staging.reset("b.csv")

    with pytest.raises(MemberCleanStoreError):
        staging.load_stage_records("name_normalization")


def test_read_state_requires_staging_run(tmp_path) -> None:
    """Reading state before any staging run should fail."""
    staging = StagingStore(tmp_path, "demo")

    with pytest.raises(MemberCleanStoreError):
        staging.read_state()
