"""Shared JSONL serialization for member records and issues.

This module centralizes record and issue JSON serialization logic.
It is reused by version persistence and staging snapshot flows.
"""

from __future__ import annotations

from datetime import date
import json
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from core.types import MemberRecord, RecordIssue

PayloadItem = TypeVar("PayloadItem")


def member_record_to_payload(record: MemberRecord) -> dict[str, object]:
    """Serialize MemberRecord into JSON-safe payload.

    Args:
        record: Member record instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "member_id": record.member_id,
        "first_name": record.first_name,
        "last_name": record.last_name,
        "street": record.street,
        "city": record.city,
        "state": record.state,
        "membership_date": _date_to_text(record.membership_date),
        "job_title": record.job_title,
        "email": record.email,
        "phone": record.phone,
        "source": {
            "full_name": record.full_name,
            "full_address": record.full_address,
            "membership_date": _date_to_text(record.source_membership_date),
            "job_title": record.raw_job_title,
        },
    }


def member_record_from_payload(payload: dict[str, Any]) -> MemberRecord:
    """Deserialize JSON payload into MemberRecord.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed MemberRecord.
    """
    source_payload = payload.get("source")
    source = source_payload if isinstance(source_payload, dict) else {}
    return MemberRecord(
        member_id=int(payload["member_id"]),
        full_name=str(source.get("full_name", "")),
        full_address=str(source.get("full_address", "")),
        source_membership_date=_date_from_text(source.get("membership_date")),
        raw_job_title=str(source.get("job_title", "")),
        email=str(payload.get("email", "")),
        phone=str(payload.get("phone", "")),
        first_name=str(payload.get("first_name", "")),
        last_name=str(payload.get("last_name", "")),
        street=str(payload.get("street", "")),
        city=str(payload.get("city", "")),
        state=str(payload.get("state", "")),
        membership_date=_date_from_text(payload.get("membership_date")),
        job_title=str(payload.get("job_title", "")),
    )


def issue_to_payload(issue: RecordIssue) -> dict[str, object]:
    """Serialize RecordIssue into JSON-safe payload."""
    return {
        "member_id": issue.member_id,
        "stage": issue.stage,
        "reason": issue.reason,
        "severity": issue.severity,
        "detail": issue.detail,
    }


def issue_from_payload(payload: dict[str, Any]) -> RecordIssue:
    """Deserialize JSON payload into RecordIssue."""
    severity = "excluded" if payload.get("severity") == "excluded" else "flagged"
    return RecordIssue(
        member_id=int(payload["member_id"]),
        stage=str(payload.get("stage", "")),
        reason=str(payload.get("reason", "")),
        severity=severity,
        detail=str(payload.get("detail", "")),
    )


def write_jsonl(
    output_path: Path,
    items: Iterable[PayloadItem],
    to_payload: Callable[[PayloadItem], dict[str, object]],
) -> None:
    """Write items to a JSONL file.

    Args:
        output_path: Output JSONL file path.
        items: Items to serialize.
        to_payload: Item serializer.
    """
    lines = [json.dumps(to_payload(item), sort_keys=True) for item in items]
    output_path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")


def read_jsonl(
    input_path: Path,
    from_payload: Callable[[dict[str, Any]], PayloadItem],
) -> list[PayloadItem]:
    """Read items from a JSONL file.

    Args:
        input_path: Input JSONL file path.
        from_payload: Payload deserializer.

    Returns:
        Parsed items.

    Raises:
        ValueError: If JSONL rows are invalid.
    """
    parsed_items: list[PayloadItem] = []
    for line_number, line in enumerate(input_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        parsed_items.append(from_payload(_parse_payload_line(line, line_number)))
    return parsed_items


def _parse_payload_line(line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one JSONL payload row.

    Raises:
        ValueError: If JSON row is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON at line {line_number}: {error.msg}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid payload at line {line_number}: expected JSON object")
    return payload


def _date_to_text(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _date_from_text(value: object) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value))
