"""Unit tests for CSV export."""

from __future__ import annotations

import csv
from datetime import date, datetime, timezone

from core.constants import EXPORT_COLUMNS
from core.types import MemberRecord, SnapshotManifest
from store.csv_export import export_records_csv


def _manifest() -> SnapshotManifest:
    return SnapshotManifest(
        dataset_name="members",
        version_id="members-v1",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        source_uri="members.csv",
        recipe_steps=("name_normalization",),
        input_count=1,
        record_count=1,
        excluded_count=0,
        flagged_count=0,
    )


def test_export_records_csv_writes_final_schema(tmp_path) -> None:
    """Exported rows should carry cleaned fields in column order."""
    record = MemberRecord(
        member_id=3,
        full_name="Jane Roe",
        full_address="1 A St, Waco, Texas",
        source_membership_date=date(2010, 5, 1),
        raw_job_title="Nurse",
        email="jane@example.com",
        phone="555",
        first_name="Jane",
        last_name="Roe",
        street="1 A St",
        city="Waco",
        state="Texas",
        membership_date=date(1910, 5, 1),
        job_title="nurse",
    )

    csv_path = export_records_csv(str(tmp_path / "out" / "members.csv"), _manifest(), [record])

    with csv_path.open(encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        rows = list(reader)
    assert tuple(reader.fieldnames or ()) == EXPORT_COLUMNS
    assert rows[0]["membership_date"] == "1910-05-01"
    assert rows[0]["last_name"] == "Roe" and rows[0]["state"] == "Texas"
