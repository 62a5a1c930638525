"""Unit tests for raw member record readers."""

from __future__ import annotations

from datetime import date

import pytest

from core.constants import DEFAULT_DATE_FORMATS
from core.errors import MemberCleanIngestError
from core.settings import PipelineSettings
from ingest.input_reader import parse_membership_date, read_member_records
from tests.fixture_paths import fixture_path


def test_read_member_records_reads_csv_and_assigns_ids() -> None:
    """CSV rows should load in order with ids 1..N."""
    records = read_member_records(str(fixture_path("members_raw.csv")), PipelineSettings())

    assert [record.member_id for record in records] == [1, 2, 3, 4, 5, 6, 7]
    assert records[0].full_name == "  Mr. John-Paul O'Smith"
    assert records[0].membership_date == date(2015, 3, 5)
    assert records[0].raw_membership_date == "15-03-05"
    assert records[5].membership_date is None
    assert records[0].source_uri.endswith("members_raw.csv:2")


def test_read_member_records_uses_source_ids_from_jsonl() -> None:
    """Source member ids should be kept and blank lines skipped."""
    records = read_member_records(
        str(fixture_path("members_with_ids.jsonl")), PipelineSettings()
    )

    assert [record.member_id for record in records] == [101, 205]
    assert records[1].membership_date == date(1999, 3, 14)


def test_read_member_records_raises_for_missing_column() -> None:
    """Sources without a required column should be rejected."""
    with pytest.raises(MemberCleanIngestError, match="membership_date"):
        read_member_records(
            str(fixture_path("members_missing_column.csv")), PipelineSettings()
        )


def test_read_member_records_raises_for_invalid_jsonl() -> None:
    """Malformed JSONL lines should fail with their location."""
    with pytest.raises(MemberCleanIngestError, match=":2"):
        read_member_records(str(fixture_path("members_bad.jsonl")), PipelineSettings())


def test_read_member_records_raises_for_missing_path(tmp_path) -> None:
    """Reader should fail when source path is missing."""
    missing_path = tmp_path / "does-not-exist.csv"

    with pytest.raises(MemberCleanIngestError):
        read_member_records(str(missing_path), PipelineSettings())

    assert missing_path.exists() is False


def test_read_member_records_rejects_duplicate_source_ids(tmp_path) -> None:
    """Repeated source member ids should not be accepted."""
    source = tmp_path / "dupes.csv"
    source.write_text(
        "member_id,full_name,full_address,membership_date,job_title,email,phone\n"
        "1,A B,\"1 A, B, C\",2021-01-01,Nurse,a@example.com,1\n"
        "1,C D,\"1 A, B, C\",2021-01-01,Nurse,c@example.com,2\n",
        encoding="utf-8",
    )

    with pytest.raises(MemberCleanIngestError, match="Duplicate member_id 1"):
        read_member_records(str(source), PipelineSettings())


def test_read_member_records_reads_directory(tmp_path) -> None:
    """Directories should contribute every supported file in sorted order."""
    header = "Full_Name , Full_Address,Membership_Date,Job_Title,Email,Phone\n"
    (tmp_path / "a.csv").write_text(header + "A B,\"1 A, B, C\",2021-01-01,Nurse,a@x,1\n")
    (tmp_path / "b.csv").write_text(header + "C D,\"1 A, B, C\",2021-02-01,Nurse,c@x,2\n")
    (tmp_path / "notes.txt").write_text("ignored")

    records = read_member_records(str(tmp_path), PipelineSettings())

    assert [(record.member_id, record.full_name) for record in records] == [
        (1, "A B"),
        (2, "C D"),
    ]


@pytest.mark.parametrize(
    ("raw_value", "expected"),
    [
        ("2013-07-31", date(2013, 7, 31)),
        ("15-03-05", date(2015, 3, 5)),
        ("7/31/2023", date(2023, 7, 31)),
        ("11/18/21", date(2021, 11, 18)),
        ("  1925-01-01 ", date(1925, 1, 1)),
        ("not-a-date", None),
        ("", None),
    ],
)
def test_parse_membership_date_accepts_configured_formats(
    raw_value: str, expected: date | None
) -> None:
    """Raw dates should parse with the first matching format."""
    assert parse_membership_date(raw_value, DEFAULT_DATE_FORMATS) == expected
