"""Raw member record readers.

This module loads member rows from local CSV or JSONL files, parses raw
membership dates and assigns surrogate member ids. It normalizes inputs
into typed raw records for the cleaning stages.
"""

from __future__ import annotations

import csv
from datetime import date, datetime
import json
from pathlib import Path
from typing import Mapping, Sequence

from core.constants import (
    MEMBER_ID_COLUMN,
    REQUIRED_SOURCE_COLUMNS,
    SUPPORTED_SOURCE_EXTENSIONS,
)
from core.errors import MemberCleanIngestError
from core.settings import PipelineSettings
from core.types import RawMemberRecord

SourceRow = tuple[str, dict[str, str]]


def read_member_records(source_uri: str, settings: PipelineSettings) -> list[RawMemberRecord]:
    """Load raw member records from a local file or directory.

    Args:
        source_uri: CSV/JSONL file, or a directory of them.
        settings: Pipeline settings providing accepted date formats.

    Returns:
        Records in source order with member ids assigned.

    Raises:
        MemberCleanIngestError: If the source cannot be read or is malformed.
    """
    source_path = Path(source_uri).expanduser()
    rows = _read_local_rows(source_path)
    member_ids = _assign_member_ids(rows)
    return [
        _build_raw_record(member_id, source, row, settings.date_formats)
        for member_id, (source, row) in zip(member_ids, rows)
    ]


def parse_membership_date(raw_value: str, date_formats: Sequence[str]) -> date | None:
    """Parse raw membership date text.

    Two-digit years follow ``strptime`` and land in the 2000s for
    values below 69.

    Args:
        raw_value: Raw date text.
        date_formats: strptime formats tried in order.

    Returns:
        Parsed date, or None when no format matches.
    """
    text = (raw_value or "").strip()
    if not text:
        return None
    for date_format in date_formats:
        try:
            return datetime.strptime(text, date_format).date()
        except ValueError:
            continue
    return None


def _read_local_rows(source_path: Path) -> list[SourceRow]:
    """Read rows from a file or every supported file under a directory.

    Raises:
        MemberCleanIngestError: If path is missing or holds no rows.
    """
    if not source_path.exists():
        raise MemberCleanIngestError(
            f"Failed to read source at {source_path}: path does not exist. "
            "Provide an existing CSV/JSONL file or directory."
        )
    if source_path.is_file():
        rows = _read_file_rows(source_path)
    else:
        rows = []
        for file_path in sorted(source_path.rglob("*")):
            if file_path.is_file() and _is_supported_file(file_path):
                rows.extend(_read_file_rows(file_path))
    if not rows:
        raise MemberCleanIngestError(
            f"No member rows found under {source_path}. "
            f"Supported extensions: {SUPPORTED_SOURCE_EXTENSIONS}."
        )
    return rows


def _read_file_rows(file_path: Path) -> list[SourceRow]:
    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        return _read_csv_rows(file_path)
    if suffix == ".jsonl":
        return _read_jsonl_rows(file_path)
    raise MemberCleanIngestError(
        f"Unsupported source file {file_path}. "
        f"Supported extensions: {SUPPORTED_SOURCE_EXTENSIONS}."
    )


def _read_csv_rows(file_path: Path) -> list[SourceRow]:
    """Read CSV rows keyed by normalized header names.

    Raises:
        MemberCleanIngestError: If required columns are missing.
    """
    with file_path.open(encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        header = [_normalize_column(name) for name in reader.fieldnames or []]
        _check_columns(file_path, header)
        rows: list[SourceRow] = []
        # Line 1 is the header.
        for line_number, raw_row in enumerate(reader, 2):
            row = _normalize_row(raw_row)
            if not any(row.values()):
                continue
            rows.append((f"{file_path}:{line_number}", row))
    return rows


def _read_jsonl_rows(file_path: Path) -> list[SourceRow]:
    """Read JSONL objects as rows.

    Raises:
        MemberCleanIngestError: If a line is invalid or lacks required fields.
    """
    rows: list[SourceRow] = []
    for line_number, line in enumerate(file_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as error:
            raise MemberCleanIngestError(
                f"Failed to parse JSONL record at {file_path}:{line_number}: "
                f"{error.msg}. Fix the JSON syntax and retry."
            ) from error
        if not isinstance(payload, dict):
            raise MemberCleanIngestError(
                f"Invalid JSONL record at {file_path}:{line_number}: expected a JSON object."
            )
        row = _normalize_row(payload)
        _check_columns(Path(f"{file_path}:{line_number}"), list(row))
        rows.append((f"{file_path}:{line_number}", row))
    return rows


def _assign_member_ids(rows: list[SourceRow]) -> list[int]:
    """Use source member ids when every row has one, else number rows 1..N.

    Raises:
        MemberCleanIngestError: If source ids are partial, non-numeric or repeated.
    """
    provided = [row.get(MEMBER_ID_COLUMN, "") for _, row in rows]
    if not any(provided):
        return list(range(1, len(rows) + 1))
    member_ids: list[int] = []
    seen_ids: set[int] = set()
    for (source, _), raw_id in zip(rows, provided):
        try:
            member_id = int(raw_id)
        except ValueError as error:
            raise MemberCleanIngestError(
                f"Invalid member_id {raw_id!r} at {source}: expected an integer. "
                "Fill every member_id or drop the column to assign ids automatically."
            ) from error
        if member_id in seen_ids:
            raise MemberCleanIngestError(
                f"Duplicate member_id {member_id} at {source}. Source member ids must be unique."
            )
        seen_ids.add(member_id)
        member_ids.append(member_id)
    return member_ids


def _build_raw_record(
    member_id: int,
    source: str,
    row: Mapping[str, str],
    date_formats: Sequence[str],
) -> RawMemberRecord:
    raw_date = row.get("membership_date", "")
    return RawMemberRecord(
        member_id=member_id,
        full_name=row.get("full_name", ""),
        full_address=row.get("full_address", ""),
        membership_date=parse_membership_date(raw_date, date_formats),
        raw_membership_date=raw_date,
        job_title=row.get("job_title", ""),
        email=row.get("email", ""),
        phone=row.get("phone", ""),
        source_uri=source,
    )


def _check_columns(source: Path, columns: list[str]) -> None:
    missing = [name for name in REQUIRED_SOURCE_COLUMNS if name not in columns]
    if missing:
        raise MemberCleanIngestError(
            f"Source {source} is missing required columns: {', '.join(missing)}. "
            f"Expected columns: {', '.join(REQUIRED_SOURCE_COLUMNS)}."
        )


def _normalize_row(raw_row: Mapping[object, object]) -> dict[str, str]:
    row: dict[str, str] = {}
    for key, value in raw_row.items():
        if key is None:
            continue
        row[_normalize_column(str(key))] = "" if value is None else str(value)
    return row


def _normalize_column(name: str) -> str:
    return name.strip().lower()


def _is_supported_file(file_path: Path) -> bool:
    """Return whether a local file extension is supported."""
    return file_path.suffix.lower() in SUPPORTED_SOURCE_EXTENSIONS
