"""Unit tests for address parsing transform."""

from __future__ import annotations

from dataclasses import replace

from core.constants import DEFAULT_ADDRESS_CORRECTIONS
from core.settings import PipelineSettings
from core.types import MemberRecord
from transforms.address_parsing import parse_address, parse_addresses


def _record(member_id: int, full_address: str) -> MemberRecord:
    return MemberRecord(
        member_id=member_id,
        full_name="",
        full_address=full_address,
        source_membership_date=None,
        raw_job_title="",
        email="",
        phone="",
    )


def test_parse_address_corrects_known_bad_state_token() -> None:
    """The correction table should rewrite the garbled Texas token."""
    address = parse_address("123 Main St, Springfield, Tej+F823as", DEFAULT_ADDRESS_CORRECTIONS)

    assert address.state == "Texas"
    assert address.city == "Springfield"
    assert address.street == "123 Main St"


def test_parse_address_keeps_street_untrimmed() -> None:
    """Only city and state are trimmed."""
    address = parse_address(" 9 Pine Rd ,  Denver , Colorado ", {})

    assert address.street == " 9 Pine Rd "
    assert (address.city, address.state) == ("Denver", "Colorado")


def test_parse_address_missing_parts_resolve_to_empty() -> None:
    """Short addresses should produce empty strings rather than errors."""
    address = parse_address("9 Pine Rd", {})

    assert (address.street, address.city, address.state) == ("9 Pine Rd", "", "")


def test_parse_address_ignores_extra_parts() -> None:
    """Parts after the third comma should be ignored."""
    address = parse_address("1 Elm, Austin, Texas, USA", {})

    assert address.state == "Texas"


def test_parse_addresses_uses_extended_correction_table() -> None:
    """New corrupted tokens should be fixable through settings alone."""
    settings = replace(
        PipelineSettings(),
        address_corrections={"Tej+F823as": "Texas", "Kalifornia": "California"},
    )

    output = parse_addresses([_record(1, "1 Sun Ave, Fresno, Kalifornia")], settings)

    assert output.records[0].state == "California"
    assert output.issues == ()


def test_parse_addresses_flags_incomplete_address() -> None:
    """Addresses with fewer than three parts should be flagged and kept."""
    output = parse_addresses([_record(7, "9 Pine Rd, Denver")], PipelineSettings())

    assert output.records[0].city == "Denver"
    assert [(issue.member_id, issue.reason) for issue in output.issues] == [
        (7, "incomplete_address")
    ]
