"""Job title standardization transform.

This module lowercases job titles and rewrites a trailing roman-numeral
token into a ``, level N`` suffix.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping

from core.constants import STAGE_CATEGORY_STANDARDIZATION
from core.settings import PipelineSettings
from core.types import MemberRecord, RecordIssue, StageOutput


def standardize_job_title(job_title: str, level_suffixes: Mapping[str, int]) -> str:
    """Standardize one raw job title.

    Only an exact final whitespace-delimited token is matched, so words
    that merely end in numeral letters are left alone.

    Args:
        job_title: Raw job title text.
        level_suffixes: Lowercase trailing token to level number.

    Returns:
        Lowercased title, with a matched trailing token replaced by
        ``, level N``.
    """
    lowered = (job_title or "").strip().lower()
    tokens = lowered.split()
    if len(tokens) < 2:
        return lowered
    level = _match_level(tokens[-1], level_suffixes)
    if level is None:
        return lowered
    prefix = lowered[: len(lowered) - len(tokens[-1])].rstrip()
    return f"{prefix}, level {level}"


def standardize_job_titles(
    records: Iterable[MemberRecord],
    settings: PipelineSettings,
) -> StageOutput:
    """Standardize job titles for every record.

    Args:
        records: Records entering the stage.
        settings: Pipeline settings providing the level mapping.

    Returns:
        Records with standardized titles plus flags for blank titles.
    """
    standardized_records: list[MemberRecord] = []
    issues: list[RecordIssue] = []
    for record in records:
        job_title = standardize_job_title(record.raw_job_title, settings.level_suffixes)
        if not job_title:
            issues.append(
                RecordIssue(
                    member_id=record.member_id,
                    stage=STAGE_CATEGORY_STANDARDIZATION,
                    reason="missing_job_title",
                    severity="flagged",
                )
            )
        standardized_records.append(replace(record, job_title=job_title))
    return StageOutput(records=tuple(standardized_records), issues=tuple(issues))


def _match_level(final_token: str, level_suffixes: Mapping[str, int]) -> int | None:
    """Return the level for an exact suffix match, checked in mapping order."""
    for suffix, level in level_suffixes.items():
        if final_token == suffix.lower():
            return level
    return None
