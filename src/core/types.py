"""Shared typed models.

This module defines immutable data models used by ingest, transforms,
store, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

IssueSeverity = Literal["flagged", "excluded"]


@dataclass(frozen=True)
class RawMemberRecord:
    """Member row as loaded from a source file.

    Attributes:
        member_id: Surrogate identity assigned at load time.
        full_name: Raw full name text.
        full_address: Raw comma-delimited address text.
        membership_date: Parsed date, or None when the raw text did not parse.
        raw_membership_date: Original membership date text.
        job_title: Raw job title text.
        email: Raw email string.
        phone: Raw phone string.
        source_uri: Origin file and line of the row.
    """

    member_id: int
    full_name: str
    full_address: str
    membership_date: date | None
    raw_membership_date: str
    job_title: str
    email: str
    phone: str
    source_uri: str = ""


@dataclass(frozen=True)
class MemberRecord:
    """Member record flowing through the cleaning stages.

    Raw inputs stay attached so every stage derives its fields from the
    original values, which keeps re-running a stage side-effect free.

    Attributes:
        member_id: Immutable surrogate identity.
        full_name: Raw full name input.
        full_address: Raw address input.
        source_membership_date: Date as parsed by the loader.
        raw_job_title: Raw job title input.
        email: Contact email, dedup key component.
        phone: Contact phone, dedup key component.
        first_name: Normalized first name.
        last_name: Normalized last name.
        street: Street part of the address, untrimmed.
        city: City part of the address.
        state: Corrected state part of the address.
        membership_date: Century-corrected membership date.
        job_title: Standardized job title.
    """

    member_id: int
    full_name: str
    full_address: str
    source_membership_date: date | None
    raw_job_title: str
    email: str
    phone: str
    first_name: str = ""
    last_name: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    membership_date: date | None = None
    job_title: str = ""


@dataclass(frozen=True)
class RecordIssue:
    """One flagged or excluded record reported by a stage.

    Attributes:
        member_id: Identity of the affected record.
        stage: Stage that raised the issue.
        reason: Machine-readable reason code.
        severity: ``flagged`` keeps the record, ``excluded`` removes it.
        detail: Human-readable context.
    """

    member_id: int
    stage: str
    reason: str
    severity: IssueSeverity
    detail: str = ""


@dataclass(frozen=True)
class StageOutput:
    """Collection produced by one transform stage."""

    records: tuple[MemberRecord, ...]
    issues: tuple[RecordIssue, ...] = ()


@dataclass(frozen=True)
class CleaningResult:
    """Outcome of the full stage sequence.

    Attributes:
        records: Cleaned records ordered by member id.
        issues: Every issue raised across stages, in stage order.
        recipe_steps: Ordered stage names that produced the records.
        input_count: Number of records entering the first stage.
    """

    records: tuple[MemberRecord, ...]
    issues: tuple[RecordIssue, ...]
    recipe_steps: tuple[str, ...]
    input_count: int

    @property
    def excluded(self) -> tuple[RecordIssue, ...]:
        """Return issues that removed a record."""
        return tuple(issue for issue in self.issues if issue.severity == "excluded")

    @property
    def flagged(self) -> tuple[RecordIssue, ...]:
        """Return issues that kept the record with a warning."""
        return tuple(issue for issue in self.issues if issue.severity == "flagged")


@dataclass(frozen=True)
class SnapshotManifest:
    """Immutable version metadata for a cleaned dataset.

    Attributes:
        dataset_name: Logical dataset identifier.
        version_id: Immutable version id.
        created_at: UTC creation timestamp.
        source_uri: Source the version was cleaned from.
        recipe_steps: Ordered stages used to create the version.
        input_count: Number of raw records loaded.
        record_count: Number of cleaned records persisted.
        excluded_count: Number of records removed by stages.
        flagged_count: Number of flagged-but-kept issues.
    """

    dataset_name: str
    version_id: str
    created_at: datetime
    source_uri: str
    recipe_steps: tuple[str, ...]
    input_count: int
    record_count: int
    excluded_count: int
    flagged_count: int


@dataclass(frozen=True)
class SnapshotWriteRequest:
    """Request payload for version persistence.

    Attributes:
        dataset_name: Logical dataset identifier.
        source_uri: Source the records were cleaned from.
        result: Cleaning result to persist.
    """

    dataset_name: str
    source_uri: str
    result: CleaningResult


@dataclass(frozen=True)
class CleanOptions:
    """Clean command options.

    Attributes:
        dataset_name: Dataset name to create a version for.
        source_uri: Input CSV/JSONL file or directory.
        settings_path: Optional YAML pipeline settings file.
        strict: Abort instead of excluding constraint violations.
        keep_staging: Persist every stage output next to the version.
    """

    dataset_name: str
    source_uri: str
    settings_path: str | None = None
    strict: bool = False
    keep_staging: bool = False


@dataclass(frozen=True)
class CleanRunSummary:
    """Clean command output summary."""

    version_id: str
    input_count: int
    cleaned_count: int
    excluded_count: int
    flagged_count: int


@dataclass(frozen=True)
class MemberFilter:
    """Query constraints over cleaned records.

    Attributes:
        state: Optional exact state match (case-insensitive).
        city: Optional exact city match (case-insensitive).
        job_title: Optional job title substring.
        since: Optional inclusive lower membership date.
        until: Optional inclusive upper membership date.
    """

    state: str | None = None
    city: str | None = None
    job_title: str | None = None
    since: date | None = None
    until: date | None = None


@dataclass(frozen=True)
class CsvExportRequest:
    """Request payload for exporting a version to CSV.

    Attributes:
        dataset_name: Dataset identifier.
        output_path: Destination CSV file path.
        version_id: Optional version id; latest if omitted.
    """

    dataset_name: str
    output_path: str
    version_id: str | None = None
