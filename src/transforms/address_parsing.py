"""Address decomposition transform.

This module splits composite ``street, city, state`` addresses and
rewrites known corrupted state tokens through a correction table.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Mapping

from core.constants import STAGE_ADDRESS_PARSING
from core.settings import PipelineSettings
from core.types import MemberRecord, RecordIssue, StageOutput

_ADDRESS_PART_COUNT = 3


@dataclass(frozen=True)
class ParsedAddress:
    """Address components.

    Attributes:
        street: First comma part, kept untrimmed.
        city: Second comma part, trimmed.
        state: Third comma part, trimmed and corrected.
    """

    street: str
    city: str
    state: str


def parse_address(full_address: str, corrections: Mapping[str, str]) -> ParsedAddress:
    """Decompose a comma-delimited address.

    Missing parts resolve to empty strings and parts beyond the third
    are ignored.

    Args:
        full_address: Raw address text.
        corrections: Corrupted state token to canonical state value.

    Returns:
        Parsed address components.
    """
    parts = (full_address or "").split(",")
    parts += [""] * (_ADDRESS_PART_COUNT - len(parts))
    state = parts[2].strip()
    return ParsedAddress(
        street=parts[0],
        city=parts[1].strip(),
        state=corrections.get(state, state),
    )


def parse_addresses(records: Iterable[MemberRecord], settings: PipelineSettings) -> StageOutput:
    """Populate street, city and state for every record.

    Args:
        records: Records entering the stage.
        settings: Pipeline settings providing the correction table.

    Returns:
        Records with address parts plus flags for incomplete addresses.
    """
    parsed_records: list[MemberRecord] = []
    issues: list[RecordIssue] = []
    for record in records:
        address = parse_address(record.full_address, settings.address_corrections)
        part_count = len((record.full_address or "").split(","))
        if part_count < _ADDRESS_PART_COUNT:
            issues.append(
                RecordIssue(
                    member_id=record.member_id,
                    stage=STAGE_ADDRESS_PARSING,
                    reason="incomplete_address",
                    severity="flagged",
                    detail=f"expected {_ADDRESS_PART_COUNT} parts, got {part_count}",
                )
            )
        parsed_records.append(
            replace(record, street=address.street, city=address.city, state=address.state)
        )
    return StageOutput(records=tuple(parsed_records), issues=tuple(issues))
