"""Member deduplication transform.

This module collapses records sharing a composite identity key and
keeps the most recent membership per key. It is the last stage and
the only one that needs the whole collection at once.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from core.constants import STAGE_DEDUPLICATION
from core.errors import MemberCleanTransformError
from core.types import MemberRecord, RecordIssue, StageOutput

IdentityKey = tuple[str, str, str, str]


def build_identity_key(record: MemberRecord) -> IdentityKey:
    """Build the dedup key for a record.

    Args:
        record: Record with normalized names.

    Returns:
        Tuple of ``(first_name, last_name, email, phone)``.
    """
    return (record.first_name, record.last_name, record.email, record.phone)


def remove_duplicate_members(records: Iterable[MemberRecord]) -> StageOutput:
    """Keep one record per identity key.

    Within a key the record with the latest membership date wins; equal
    dates fall back to the highest member id.

    Args:
        records: Date-corrected records.

    Returns:
        Surviving records ordered by member id, plus one exclusion issue
        per discarded duplicate.

    Raises:
        MemberCleanTransformError: If member ids are not unique or a date is missing.
    """
    groups: dict[IdentityKey, list[MemberRecord]] = {}
    seen_ids: set[int] = set()
    for record in records:
        _check_record(record, seen_ids)
        groups.setdefault(build_identity_key(record), []).append(record)
    survivors: list[MemberRecord] = []
    issues: list[RecordIssue] = []
    for group in groups.values():
        ranked = sorted(group, key=_rank_key, reverse=True)
        survivor = ranked[0]
        survivors.append(survivor)
        issues.extend(_duplicate_issue(duplicate, survivor) for duplicate in ranked[1:])
    survivors.sort(key=lambda item: item.member_id)
    issues.sort(key=lambda item: item.member_id)
    return StageOutput(records=tuple(survivors), issues=tuple(issues))


def _rank_key(record: MemberRecord) -> tuple[date, int]:
    """Rank by membership date, then member id."""
    return (record.membership_date or date.min, record.member_id)


def _check_record(record: MemberRecord, seen_ids: set[int]) -> None:
    """Enforce the stage input contract."""
    if record.member_id in seen_ids:
        raise MemberCleanTransformError(
            f"Duplicate member_id {record.member_id} reached deduplication. "
            "Member ids must stay unique across every stage."
        )
    if record.membership_date is None:
        raise MemberCleanTransformError(
            f"Record {record.member_id} reached deduplication without a membership date. "
            "Run temporal correction before deduplication."
        )
    seen_ids.add(record.member_id)


def _duplicate_issue(duplicate: MemberRecord, survivor: MemberRecord) -> RecordIssue:
    return RecordIssue(
        member_id=duplicate.member_id,
        stage=STAGE_DEDUPLICATION,
        reason="duplicate",
        severity="excluded",
        detail=f"kept member_id={survivor.member_id}",
    )
