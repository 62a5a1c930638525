"""Python SDK for member dataset operations.

This module exposes high-level APIs for cleaning, loading, querying,
issue inspection and export backed by the record store.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from core.config import MemberCleanConfig
from core.types import (
    CleanOptions,
    CleanRunSummary,
    CsvExportRequest,
    IssueSeverity,
    MemberFilter,
    MemberRecord,
    RecordIssue,
    SnapshotManifest,
)
from ingest.pipeline import clean_dataset
from ingest.staging_store import StagingState, StagingStore
from store.csv_export import export_records_csv
from store.record_store import RecordStore


class MemberCleanClient:
    """Primary SDK entry point."""

    def __init__(self, config: MemberCleanConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or MemberCleanConfig.from_env()
        self._store = RecordStore(self._config)

    def clean(self, options: CleanOptions) -> CleanRunSummary:
        """Clean a source into a new dataset version.

        Args:
            options: Clean options.

        Returns:
            Created version summary.
        """
        return clean_dataset(options, self._config)

    def dataset(self, dataset_name: str) -> "Dataset":
        """Get dataset handle by name."""
        staging = StagingStore(self._config.data_root, dataset_name)
        return Dataset(dataset_name, self._store, staging)

    def with_data_root(self, data_root: str) -> "MemberCleanClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        return MemberCleanClient(replace(self._config, data_root=resolved_root))


class Dataset:
    """Dataset handle for version-aware reads."""

    def __init__(self, dataset_name: str, store: RecordStore, staging: StagingStore) -> None:
        self.name = dataset_name
        self._store = store
        self._staging = staging

    def list_versions(self) -> list[SnapshotManifest]:
        """List version manifests, oldest first."""
        return self._store.list_versions(self.name)

    def load_records(self, version_id: str | None = None) -> list[MemberRecord]:
        """Load cleaned records of a version; latest when omitted."""
        _, records = self._store.load_records(self.name, version_id)
        return records

    def issues(
        self,
        version_id: str | None = None,
        severity: IssueSeverity | None = None,
    ) -> list[RecordIssue]:
        """Load the flagged/excluded record manifest of a version.

        Args:
            version_id: Optional version id; latest when omitted.
            severity: Optional severity to keep.

        Returns:
            Issues in stage order.
        """
        _, issues = self._store.load_issues(self.name, version_id)
        if severity is None:
            return issues
        return [issue for issue in issues if issue.severity == severity]

    def query(self, filter_spec: MemberFilter, version_id: str | None = None) -> list[MemberRecord]:
        """Return records of a version matching the filter."""
        return self._store.query(self.name, filter_spec, version_id)

    def export_csv(self, output_path: str, version_id: str | None = None) -> Path:
        """Export a version to CSV and return the written path."""
        request = CsvExportRequest(
            dataset_name=self.name, output_path=output_path, version_id=version_id
        )
        manifest, records = self._store.load_records(request.dataset_name, request.version_id)
        return export_records_csv(request.output_path, manifest, records)

    def staging_state(self) -> StagingState:
        """Return the source and stage list of the last staged clean run."""
        return self._staging.read_state()

    def staged_records(self, stage: str) -> list[MemberRecord]:
        """Load the records one stage produced in the last staged run."""
        return self._staging.load_stage_records(stage)

    def staged_issues(self, stage: str) -> list[RecordIssue]:
        """Load the issues one stage raised in the last staged run."""
        return self._staging.load_stage_issues(stage)
