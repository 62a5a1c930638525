"""CSV export for cleaned versions.

This module writes the final member schema of a version to a CSV file
for analysis tools that do not read JSONL.
"""

from __future__ import annotations

import csv
from pathlib import Path

from core.constants import EXPORT_COLUMNS
from core.errors import MemberCleanStoreError
from core.logging_config import get_logger
from core.types import MemberRecord, SnapshotManifest

_LOGGER = get_logger(__name__)


def export_records_csv(
    output_path: str,
    manifest: SnapshotManifest,
    records: list[MemberRecord],
) -> Path:
    """Export cleaned records to a CSV file.

    Args:
        output_path: Destination file path; parent directories are created.
        manifest: Source version manifest.
        records: Version records.

    Returns:
        Resolved path of the written CSV file.

    Raises:
        MemberCleanStoreError: If the file cannot be written.
    """
    csv_path = Path(output_path).expanduser().resolve()
    try:
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        with csv_path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(EXPORT_COLUMNS))
            writer.writeheader()
            for record in records:
                writer.writerow(_export_row(record))
    except OSError as error:
        raise MemberCleanStoreError(
            f"Failed to export {manifest.dataset_name}:{manifest.version_id} to {csv_path}: "
            f"{error}. Check the output path and retry."
        ) from error
    _LOGGER.info(
        "csv_exported",
        dataset_name=manifest.dataset_name,
        version_id=manifest.version_id,
        output_path=str(csv_path),
        record_count=len(records),
    )
    return csv_path


def _export_row(record: MemberRecord) -> dict[str, object]:
    """Build one CSV row in export column order."""
    return {
        "member_id": record.member_id,
        "first_name": record.first_name,
        "last_name": record.last_name,
        "street": record.street,
        "city": record.city,
        "state": record.state,
        "membership_date": record.membership_date.isoformat() if record.membership_date else "",
        "job_title": record.job_title,
        "email": record.email,
        "phone": record.phone,
    }
