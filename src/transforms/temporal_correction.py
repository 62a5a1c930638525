"""Membership date correction transform.

This module moves dates whose two-digit year was read into the wrong
century back by one century, then enforces the valid date range.
Records outside the range are excluded and reported, never coerced.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable

from core.constants import CENTURY_SHIFT_YEARS, STAGE_TEMPORAL_CORRECTION
from core.errors import MemberCleanConstraintError
from core.settings import PipelineSettings
from core.types import MemberRecord, RecordIssue, StageOutput


def is_ambiguous_year(year: int, settings: PipelineSettings) -> bool:
    """Return whether a parsed year falls in the ambiguous band.

    The band is expressed in two-digit years and anchored to the century
    the loader maps two-digit years into, so with the defaults only
    2000 through 2020 qualify.

    Args:
        year: Four-digit year as parsed by the loader.
        settings: Pipeline settings with band and parse century.

    Returns:
        True when the year should move to the prior century.
    """
    lower = settings.parse_century + settings.ambiguous_year_lower
    upper = settings.parse_century + settings.ambiguous_year_upper
    return lower <= year <= upper


def correct_membership_date(source_date: date, settings: PipelineSettings) -> date:
    """Correct one loader-parsed date.

    Args:
        source_date: Date exactly as parsed by the loader.
        settings: Pipeline settings with band and parse century.

    Returns:
        The date one century earlier when its year is ambiguous,
        otherwise the input unchanged.
    """
    if not is_ambiguous_year(source_date.year, settings):
        return source_date
    target_year = source_date.year - CENTURY_SHIFT_YEARS
    try:
        return source_date.replace(year=target_year)
    except ValueError:
        # Feb 29 does not exist in every target year.
        return source_date.replace(year=target_year, day=28)


def validate_membership_date(value: date | None, settings: PipelineSettings) -> str | None:
    """Check a corrected date against the valid range.

    Args:
        value: Corrected date, or None when the loader could not parse it.
        settings: Resolved settings with concrete ``max_date``.

    Returns:
        Violation reason code, or None when the date is valid.
    """
    if value is None:
        return "missing_membership_date"
    max_date = settings.max_date or date.today()
    if value < settings.min_date or value > max_date:
        return "membership_date_out_of_range"
    return None


def correct_membership_dates(
    records: Iterable[MemberRecord],
    settings: PipelineSettings,
) -> StageOutput:
    """Correct and validate membership dates for every record.

    The band check always reads ``source_membership_date`` so a second
    run over corrected records yields the same dates.

    Args:
        records: Records entering the stage.
        settings: Resolved pipeline settings.

    Returns:
        Valid records plus exclusion issues for range violations.

    Raises:
        MemberCleanConstraintError: In strict mode, if any record violates the range.
    """
    kept_records: list[MemberRecord] = []
    issues: list[RecordIssue] = []
    for record in records:
        corrected = _corrected_date(record.source_membership_date, settings)
        reason = validate_membership_date(corrected, settings)
        if reason is None:
            kept_records.append(replace(record, membership_date=corrected))
            continue
        issues.append(
            RecordIssue(
                member_id=record.member_id,
                stage=STAGE_TEMPORAL_CORRECTION,
                reason=reason,
                severity="excluded",
                detail=_violation_detail(record.source_membership_date, corrected, settings),
            )
        )
    if settings.strict and issues:
        _raise_strict_violation(issues)
    return StageOutput(records=tuple(kept_records), issues=tuple(issues))


def _corrected_date(source_date: date | None, settings: PipelineSettings) -> date | None:
    if source_date is None:
        return None
    return correct_membership_date(source_date, settings)


def _violation_detail(
    source_date: date | None,
    corrected: date | None,
    settings: PipelineSettings,
) -> str:
    if source_date is None:
        return "membership date could not be parsed"
    return (
        f"source={source_date.isoformat()} corrected={corrected.isoformat() if corrected else '-'} "
        f"valid={settings.min_date.isoformat()}..{(settings.max_date or date.today()).isoformat()}"
    )


def _raise_strict_violation(issues: list[RecordIssue]) -> None:
    member_ids = [issue.member_id for issue in issues]
    preview = ", ".join(str(member_id) for member_id in member_ids[:10])
    raise MemberCleanConstraintError(
        f"{len(member_ids)} record(s) violate the membership date range "
        f"(member ids: {preview}{', ...' if len(member_ids) > 10 else ''}). "
        "Fix the source dates or rerun without strict mode to exclude them.",
        member_ids,
    )
