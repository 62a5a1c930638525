"""Record store and version catalog.

This module persists immutable cleaned dataset versions together with
their issue manifest. It provides load, save, list and query operations
at the pipeline boundary.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import shutil
from typing import Any, cast

from core.config import MemberCleanConfig
from core.constants import (
    CATALOG_FILE_NAME,
    DATASETS_DIR_NAME,
    ISSUES_FILE_NAME,
    RECORDS_FILE_NAME,
    VERSIONS_DIR_NAME,
)
from core.errors import MemberCleanStoreError
from core.logging_config import get_logger
from core.settings import PipelineSettings
from core.types import (
    MemberFilter,
    MemberRecord,
    RawMemberRecord,
    RecordIssue,
    SnapshotManifest,
    SnapshotWriteRequest,
)
from ingest.input_reader import read_member_records
from store.catalog_io import (
    build_version_id,
    manifest_from_dict,
    read_catalog_file,
    update_catalog,
    write_manifest_file,
)
from store.record_payload import (
    issue_from_payload,
    issue_to_payload,
    member_record_from_payload,
    member_record_to_payload,
    read_jsonl,
    write_jsonl,
)

_LOGGER = get_logger(__name__)


class RecordStore:
    """Filesystem-backed record store.

    This class owns dataset directories, version manifests,
    and catalog updates for cleaned member datasets.
    """

    def __init__(self, config: MemberCleanConfig) -> None:
        """Initialize record store from config.

        Args:
            config: Runtime configuration.
        """
        self._config = config
        self._datasets_root = config.data_root / DATASETS_DIR_NAME
        self._datasets_root.mkdir(parents=True, exist_ok=True)

    def load(self, source_uri: str, settings: PipelineSettings) -> list[RawMemberRecord]:
        """Bulk-load raw member records from a source.

        Args:
            source_uri: CSV/JSONL file or directory.
            settings: Pipeline settings providing date formats.

        Returns:
            Raw records with member ids assigned.

        Raises:
            MemberCleanIngestError: If the source cannot be read.
        """
        records = read_member_records(source_uri, settings)
        _LOGGER.info("records_loaded", source_uri=source_uri, record_count=len(records))
        return records

    def save(self, request: SnapshotWriteRequest) -> SnapshotManifest:
        """Persist cleaned records and their issues as a new version.

        Args:
            request: Version write request payload.

        Returns:
            Persisted version manifest.

        Raises:
            MemberCleanStoreError: If persistence fails.
        """
        result = request.result
        dataset_root = self._dataset_root(request.dataset_name)
        version_id = build_version_id(request.dataset_name, result.records)
        version_dir = dataset_root / VERSIONS_DIR_NAME / version_id
        try:
            version_dir.mkdir(parents=True, exist_ok=False)
        except FileExistsError as error:
            raise MemberCleanStoreError(
                f"Version directory {version_dir} already exists. Retry the clean run."
            ) from error
        except OSError as error:
            raise MemberCleanStoreError(
                f"Failed to create version directory {version_dir}: {error}. "
                "Check permissions under the data root."
            ) from error
        manifest = SnapshotManifest(
            dataset_name=request.dataset_name,
            version_id=version_id,
            created_at=datetime.now(timezone.utc),
            source_uri=request.source_uri,
            recipe_steps=result.recipe_steps,
            input_count=result.input_count,
            record_count=len(result.records),
            excluded_count=len(result.excluded),
            flagged_count=len(result.flagged),
        )
        try:
            write_jsonl(version_dir / RECORDS_FILE_NAME, result.records, member_record_to_payload)
            write_jsonl(version_dir / ISSUES_FILE_NAME, result.issues, issue_to_payload)
            write_manifest_file(version_dir, manifest)
            update_catalog(dataset_root / CATALOG_FILE_NAME, manifest)
        except OSError as error:
            shutil.rmtree(version_dir, ignore_errors=True)
            raise MemberCleanStoreError(
                f"Failed to write version {version_id} at {version_dir}: {error}. "
                "Check free space and permissions under the data root, then rerun clean."
            ) from error
        _LOGGER.info(
            "snapshot_created",
            dataset_name=request.dataset_name,
            version_id=version_id,
            record_count=manifest.record_count,
            excluded_count=manifest.excluded_count,
            flagged_count=manifest.flagged_count,
        )
        return manifest

    def list_versions(self, dataset_name: str) -> list[SnapshotManifest]:
        """List manifests for a dataset sorted by creation time.

        Args:
            dataset_name: Dataset identifier.

        Returns:
            Ordered manifest list.

        Raises:
            MemberCleanStoreError: If dataset catalog does not exist.
        """
        catalog_path = self._dataset_root(dataset_name) / CATALOG_FILE_NAME
        catalog = read_catalog_file(catalog_path)
        version_payloads = cast(list[dict[str, Any]], catalog["versions"])
        versions = [manifest_from_dict(item) for item in version_payloads]
        return sorted(versions, key=lambda item: item.created_at)

    def load_records(
        self,
        dataset_name: str,
        version_id: str | None = None,
    ) -> tuple[SnapshotManifest, list[MemberRecord]]:
        """Load cleaned records for a dataset version.

        Args:
            dataset_name: Dataset identifier.
            version_id: Optional version; latest when omitted.

        Returns:
            Pair of manifest and loaded records.

        Raises:
            MemberCleanStoreError: If dataset/version is missing or corrupt.
        """
        manifest = self._resolve_manifest(dataset_name, version_id)
        records_path = self._version_dir(dataset_name, manifest.version_id) / RECORDS_FILE_NAME
        return manifest, self._read_version_file(records_path, member_record_from_payload)

    def load_issues(
        self,
        dataset_name: str,
        version_id: str | None = None,
    ) -> tuple[SnapshotManifest, list[RecordIssue]]:
        """Load the issue manifest for a dataset version.

        Args:
            dataset_name: Dataset identifier.
            version_id: Optional version; latest when omitted.

        Returns:
            Pair of manifest and issues in stage order.

        Raises:
            MemberCleanStoreError: If dataset/version is missing or corrupt.
        """
        manifest = self._resolve_manifest(dataset_name, version_id)
        issues_path = self._version_dir(dataset_name, manifest.version_id) / ISSUES_FILE_NAME
        return manifest, self._read_version_file(issues_path, issue_from_payload)

    def query(
        self,
        dataset_name: str,
        filter_spec: MemberFilter,
        version_id: str | None = None,
    ) -> list[MemberRecord]:
        """Query cleaned records of a version.

        Args:
            dataset_name: Dataset identifier.
            filter_spec: Record constraints.
            version_id: Optional version; latest when omitted.

        Returns:
            Matching records ordered by member id.
        """
        _, records = self.load_records(dataset_name, version_id)
        return [record for record in records if _matches(record, filter_spec)]

    def _dataset_root(self, dataset_name: str) -> Path:
        """Return dataset root path without touching the filesystem."""
        return self._datasets_root / dataset_name

    def _resolve_manifest(self, dataset_name: str, version_id: str | None) -> SnapshotManifest:
        """Resolve a target manifest.

        Raises:
            MemberCleanStoreError: If catalog or target version is missing.
        """
        manifests = self.list_versions(dataset_name)
        if not manifests:
            raise MemberCleanStoreError(
                f"No versions exist for dataset '{dataset_name}'. "
                "Run clean before reading records."
            )
        if version_id is None:
            return manifests[-1]
        for manifest in manifests:
            if manifest.version_id == version_id:
                return manifest
        raise MemberCleanStoreError(
            f"Version '{version_id}' not found for dataset '{dataset_name}'. "
            "Use list_versions to discover valid version ids."
        )

    def _version_dir(self, dataset_name: str, version_id: str) -> Path:
        """Return version directory.

        Raises:
            MemberCleanStoreError: If version directory is missing.
        """
        version_dir = self._dataset_root(dataset_name) / VERSIONS_DIR_NAME / version_id
        if not version_dir.exists():
            raise MemberCleanStoreError(
                f"Missing version directory for {dataset_name}:{version_id} at {version_dir}. "
                "Recreate the version by cleaning the source again."
            )
        return version_dir

    def _read_version_file(self, file_path: Path, from_payload: Any) -> list[Any]:
        try:
            return read_jsonl(file_path, from_payload)
        except (OSError, ValueError, KeyError) as error:
            raise MemberCleanStoreError(
                f"Failed to read version file {file_path}: {error}. "
                "Recreate the version by cleaning the source again."
            ) from error


def _matches(record: MemberRecord, filter_spec: MemberFilter) -> bool:
    """Return whether a record satisfies every set constraint."""
    if filter_spec.state and record.state.lower() != filter_spec.state.strip().lower():
        return False
    if filter_spec.city and record.city.lower() != filter_spec.city.strip().lower():
        return False
    if filter_spec.job_title:
        if filter_spec.job_title.strip().lower() not in record.job_title:
            return False
    if record.membership_date is not None:
        if filter_spec.since and record.membership_date < filter_spec.since:
            return False
        if filter_spec.until and record.membership_date > filter_spec.until:
            return False
    return True
