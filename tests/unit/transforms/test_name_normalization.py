"""Unit tests for name normalization transform."""

from __future__ import annotations

import re

import pytest

from core.constants import DEFAULT_HONORIFICS
from core.settings import PipelineSettings
from core.types import MemberRecord
from transforms.name_normalization import normalize_name, normalize_names

_NAME_PATTERN = re.compile(r"^[A-Za-z\-]*( [A-Za-z\- ]+)?$")


def _record(member_id: int, full_name: str) -> MemberRecord:
    return MemberRecord(
        member_id=member_id,
        full_name=full_name,
        full_address="",
        source_membership_date=None,
        raw_job_title="",
        email="",
        phone="",
    )


def test_normalize_name_strips_punctuation_and_honorific() -> None:
    """Stray punctuation and a leading honorific should be removed."""
    first_name, last_name = normalize_name("  Mr. John-Paul O'Smith", DEFAULT_HONORIFICS)

    assert (first_name, last_name) == ("John-Paul", "OSmith")


def test_normalize_name_drops_leading_digits_and_symbols() -> None:
    """Leading digits and symbols should not survive normalization."""
    first_name, last_name = normalize_name("?12ESTRELLA  LINDSAY#")

    assert (first_name, last_name) == ("ESTRELLA", "LINDSAY")


def test_normalize_name_keeps_multi_word_last_name() -> None:
    """Everything after the first space should belong to the last name."""
    first_name, last_name = normalize_name("Anna van der Berg")

    assert (first_name, last_name) == ("Anna", "van der Berg")


def test_normalize_name_single_token_has_empty_last_name() -> None:
    """Names without a space should degrade to an empty last name."""
    assert normalize_name("Cher") == ("Cher", "")


def test_normalize_name_keeps_lone_honorific_token() -> None:
    """A honorific is only dropped while another token remains."""
    assert normalize_name("Dr.", DEFAULT_HONORIFICS) == ("Dr", "")


@pytest.mark.parametrize(
    "raw_name",
    ["  Mr. John-Paul O'Smith", "a1b2 c3d4", "***", "", "Mr Mr  Smith", "x\ty\nz"],
)
def test_normalize_name_output_is_clean_and_idempotent(raw_name: str) -> None:
    """Output should use only allowed characters and be stable on rerun."""
    first_name, last_name = normalize_name(raw_name, DEFAULT_HONORIFICS)
    joined = f"{first_name} {last_name}".strip()

    rerun = normalize_name(joined, DEFAULT_HONORIFICS)

    assert _NAME_PATTERN.match(joined) and "  " not in joined
    assert rerun == (first_name, last_name)


def test_normalize_names_flags_degraded_names() -> None:
    """Stage should flag empty and single-token names but keep the records."""
    records = [_record(1, "Jane Roe"), _record(2, "Prince"), _record(3, "!!!")]

    output = normalize_names(records, PipelineSettings())

    assert [record.member_id for record in output.records] == [1, 2, 3]
    assert [(issue.member_id, issue.reason) for issue in output.issues] == [
        (2, "missing_last_name"),
        (3, "empty_name"),
    ]
    assert all(issue.severity == "flagged" for issue in output.issues)
