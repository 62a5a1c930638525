"""Unit tests for member deduplication transform."""

from __future__ import annotations

from datetime import date
import random

import pytest

from core.errors import MemberCleanTransformError
from core.types import MemberRecord
from transforms.deduplication import build_identity_key, remove_duplicate_members


def _record(
    member_id: int,
    membership_date: date | None,
    first_name: str = "Ann",
    email: str = "ann@example.com",
) -> MemberRecord:
    return MemberRecord(
        member_id=member_id,
        full_name="",
        full_address="",
        source_membership_date=membership_date,
        raw_job_title="",
        email=email,
        phone="555-0100",
        first_name=first_name,
        last_name="Lee",
        membership_date=membership_date,
    )


def test_remove_duplicate_members_keeps_most_recent() -> None:
    """The latest membership date should survive within a key."""
    records = [
        _record(1, date(2021, 6, 1)),
        _record(2, date(2022, 6, 1)),
        _record(3, date(1990, 1, 1)),
    ]

    output = remove_duplicate_members(records)

    assert [record.member_id for record in output.records] == [2]
    assert [(issue.member_id, issue.detail) for issue in output.issues] == [
        (1, "kept member_id=2"),
        (3, "kept member_id=2"),
    ]
    assert all(issue.reason == "duplicate" for issue in output.issues)


def test_remove_duplicate_members_breaks_date_ties_by_member_id() -> None:
    """Equal dates should keep the highest member id."""
    records = [_record(8, date(2020, 1, 1)), _record(3, date(2020, 1, 1))]

    output = remove_duplicate_members(records)

    assert [record.member_id for record in output.records] == [8]


def test_remove_duplicate_members_keeps_distinct_keys() -> None:
    """Records differing in any key component should all survive."""
    records = [
        _record(1, date(2020, 1, 1)),
        _record(2, date(2020, 1, 1), first_name="Anne"),
        _record(3, date(2020, 1, 1), email="ann@other.example.com"),
    ]

    output = remove_duplicate_members(records)

    assert len(output.records) == 3 and output.issues == ()


def test_remove_duplicate_members_key_unique_and_max_date_survives() -> None:
    """Survivors should be unique per key and carry the group maximum date."""
    generator = random.Random(7)
    records = [
        _record(
            member_id,
            date(generator.randint(1950, 2020), generator.randint(1, 12), 1),
            first_name=generator.choice(["Ann", "Bo", "Cy"]),
            email=generator.choice(["a@example.com", "b@example.com"]),
        )
        for member_id in range(1, 61)
    ]

    output = remove_duplicate_members(records)

    keys = [build_identity_key(record) for record in output.records]
    assert len(keys) == len(set(keys))
    for survivor in output.records:
        group_dates = [
            record.membership_date
            for record in records
            if build_identity_key(record) == build_identity_key(survivor)
        ]
        assert survivor.membership_date == max(group_dates)
    assert len(output.records) + len(output.issues) == len(records)


def test_remove_duplicate_members_rejects_repeated_ids() -> None:
    """Repeated member ids should be treated as a broken stage contract."""
    with pytest.raises(MemberCleanTransformError):
        remove_duplicate_members([_record(1, date(2020, 1, 1)), _record(1, date(2021, 1, 1))])


def test_remove_duplicate_members_requires_corrected_dates() -> None:
    """Records without a membership date must not reach deduplication."""
    with pytest.raises(MemberCleanTransformError):
        remove_duplicate_members([_record(1, None)])
