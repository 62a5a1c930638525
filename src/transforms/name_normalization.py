"""Member name normalization transform.

This module strips non-name characters from raw full names and splits
them into first and last name. It is the first cleaning stage.
"""

from __future__ import annotations

from dataclasses import replace
import re
from typing import Iterable

from core.constants import STAGE_NAME_NORMALIZATION
from core.settings import PipelineSettings
from core.types import MemberRecord, RecordIssue, StageOutput

_NON_NAME_CHARACTERS = re.compile(r"[^A-Za-z\- ]")


def normalize_name(full_name: str, honorifics: Iterable[str] = ()) -> tuple[str, str]:
    """Split a raw full name into cleaned first and last name.

    Characters outside letters, hyphen and space are dropped, whitespace
    is collapsed, and leading honorifics are removed while another token
    remains.

    Args:
        full_name: Raw full name text.
        honorifics: Lowercase leading tokens to drop, e.g. ``mr``.

    Returns:
        Pair of ``(first_name, last_name)``; ``last_name`` is empty for
        single-token names.
    """
    cleaned = _clean_name_text(full_name)
    tokens = cleaned.split(" ") if cleaned else []
    honorific_set = {value.strip().lower() for value in honorifics}
    while len(tokens) > 1 and tokens[0].lower() in honorific_set:
        tokens = tokens[1:]
    if not tokens:
        return "", ""
    return tokens[0], " ".join(tokens[1:]).strip()


def normalize_names(records: Iterable[MemberRecord], settings: PipelineSettings) -> StageOutput:
    """Populate first and last names for every record.

    Args:
        records: Records entering the stage.
        settings: Pipeline settings providing honorifics.

    Returns:
        Records with names populated plus flags for degraded names.
    """
    normalized_records: list[MemberRecord] = []
    issues: list[RecordIssue] = []
    for record in records:
        first_name, last_name = normalize_name(record.full_name, settings.honorifics)
        issue = _name_issue(record, first_name, last_name)
        if issue is not None:
            issues.append(issue)
        normalized_records.append(replace(record, first_name=first_name, last_name=last_name))
    return StageOutput(records=tuple(normalized_records), issues=tuple(issues))


def _clean_name_text(full_name: str) -> str:
    """Drop disallowed characters and collapse whitespace."""
    allowed_only = _NON_NAME_CHARACTERS.sub("", full_name or "")
    return " ".join(allowed_only.split())


def _name_issue(record: MemberRecord, first_name: str, last_name: str) -> RecordIssue | None:
    """Build a flag for names that degraded during normalization."""
    if not first_name:
        reason = "empty_name"
    elif not last_name:
        reason = "missing_last_name"
    else:
        return None
    return RecordIssue(
        member_id=record.member_id,
        stage=STAGE_NAME_NORMALIZATION,
        reason=reason,
        severity="flagged",
        detail=f"full_name={record.full_name!r}",
    )
