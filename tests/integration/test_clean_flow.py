"""Integration tests for the SDK clean flow."""

from __future__ import annotations

from datetime import date

from core.config import MemberCleanConfig
from core.types import CleanOptions, MemberFilter
from memberclean import MemberCleanClient
from tests.fixture_paths import fixture_path


def test_clean_jsonl_source_with_settings_file(tmp_path) -> None:
    """A settings file should drive band, corrections and suffixes."""
    client = MemberCleanClient(MemberCleanConfig(data_root=tmp_path))
    options = CleanOptions(
        dataset_name="ids",
        source_uri=str(fixture_path("members_with_ids.jsonl")),
        settings_path=str(fixture_path("settings/custom.yaml")),
    )

    summary = client.clean(options)

    records = client.dataset("ids").load_records(summary.version_id)
    assert summary.input_count == 2
    assert [record.member_id for record in records] == [101, 205]
    assert records[0].membership_date == date(2019, 11, 2)
    assert records[0].state == "Texas"
    assert records[1].membership_date == date(1999, 3, 14)


def test_clean_csv_source_end_to_end(tmp_path) -> None:
    """The SDK should clean, persist, query and export a CSV source."""
    client = MemberCleanClient(MemberCleanConfig(data_root=tmp_path))
    options = CleanOptions(
        dataset_name="members",
        source_uri=str(fixture_path("members_raw.csv")),
        keep_staging=True,
    )

    summary = client.clean(options)

    dataset = client.dataset("members")
    records = dataset.load_records()
    first = records[0]
    assert (summary.cleaned_count, summary.excluded_count, summary.flagged_count) == (4, 3, 2)
    assert (first.first_name, first.last_name) == ("John-Paul", "OSmith")
    assert (first.street, first.city, first.state) == ("1 Elm", "Austin", "Texas")
    assert first.membership_date == date(1915, 3, 5)
    assert first.job_title == "data analyst, level 2"
    assert records[1].membership_date == date(2023, 7, 31)
    assert [issue.member_id for issue in dataset.issues(severity="flagged")] == [4, 5]
    assert [record.member_id for record in dataset.query(MemberFilter(state="Utah"))] == [3]
    assert (tmp_path / "datasets" / "members" / "staging" / "05_deduplication.records.jsonl").exists()
    assert dataset.export_csv(str(tmp_path / "members.csv")).exists()


def test_staged_output_is_readable_through_sdk(tmp_path) -> None:
    """Staged stage outputs should load through the dataset handle."""
    client = MemberCleanClient(MemberCleanConfig(data_root=tmp_path))
    options = CleanOptions(
        dataset_name="members",
        source_uri=str(fixture_path("members_raw.csv")),
        keep_staging=True,
    )

    client.clean(options)

    dataset = client.dataset("members")
    assert dataset.staging_state().stages[-1] == "deduplication"
    assert [record.member_id for record in dataset.staged_records("deduplication")] == [1, 2, 3, 5]
    assert [issue.member_id for issue in dataset.staged_issues("deduplication")] == [4]
