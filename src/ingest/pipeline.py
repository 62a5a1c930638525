"""Cleaning pipeline orchestration.

This module composes the five cleaning stages into one linear pass and
coordinates bulk load, optional staging snapshots and version writes.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable, Sequence

from core.config import MemberCleanConfig
from core.constants import (
    PIPELINE_STAGES,
    STAGE_ADDRESS_PARSING,
    STAGE_CATEGORY_STANDARDIZATION,
    STAGE_DEDUPLICATION,
    STAGE_NAME_NORMALIZATION,
    STAGE_TEMPORAL_CORRECTION,
)
from core.errors import MemberCleanTransformError
from core.logging_config import get_logger
from core.settings import PipelineSettings, load_settings_file, resolve_settings
from core.types import (
    CleaningResult,
    CleanOptions,
    CleanRunSummary,
    MemberRecord,
    RawMemberRecord,
    RecordIssue,
    SnapshotWriteRequest,
    StageOutput,
)
from ingest.staging_store import StagingStore
from store.record_store import RecordStore
from transforms.address_parsing import parse_addresses
from transforms.category_standardization import standardize_job_titles
from transforms.deduplication import remove_duplicate_members
from transforms.name_normalization import normalize_names
from transforms.temporal_correction import correct_membership_dates

_LOGGER = get_logger(__name__)

StageFunction = Callable[[Sequence[MemberRecord], PipelineSettings], StageOutput]
StageCallback = Callable[[str, StageOutput], None]


def _deduplicate(records: Sequence[MemberRecord], _settings: PipelineSettings) -> StageOutput:
    return remove_duplicate_members(records)


_STAGE_FUNCTIONS: dict[str, StageFunction] = {
    STAGE_NAME_NORMALIZATION: normalize_names,
    STAGE_ADDRESS_PARSING: parse_addresses,
    STAGE_TEMPORAL_CORRECTION: correct_membership_dates,
    STAGE_CATEGORY_STANDARDIZATION: standardize_job_titles,
    STAGE_DEDUPLICATION: _deduplicate,
}


def to_member_record(raw_record: RawMemberRecord) -> MemberRecord:
    """Lift a loaded raw record into the pipeline record shape.

    Args:
        raw_record: Record as loaded by the store.

    Returns:
        Member record with raw inputs set and derived fields empty.
    """
    return MemberRecord(
        member_id=raw_record.member_id,
        full_name=raw_record.full_name,
        full_address=raw_record.full_address,
        source_membership_date=raw_record.membership_date,
        raw_job_title=raw_record.job_title,
        email=raw_record.email,
        phone=raw_record.phone,
    )


def run_cleaning_stages(
    records: Iterable[MemberRecord | RawMemberRecord],
    settings: PipelineSettings | None = None,
    on_stage: StageCallback | None = None,
) -> CleaningResult:
    """Run every cleaning stage over one in-memory batch.

    Settings are validated before the first record is touched. Each
    stage receives the fully materialized output of the previous one.

    Args:
        records: Raw or pipeline records.
        settings: Optional pipeline settings; defaults when omitted.
        on_stage: Optional callback invoked with each stage output.

    Returns:
        Cleaned records plus every issue raised along the way.

    Raises:
        MemberCleanConfigError: If settings are invalid.
        MemberCleanConstraintError: In strict mode, on date range violations.
        MemberCleanTransformError: If a stage breaks record identity.
    """
    resolved_settings = resolve_settings(settings or PipelineSettings())
    current = tuple(_as_member_record(record) for record in records)
    _check_unique_ids(current)
    input_count = len(current)
    issues: list[RecordIssue] = []
    for stage in PIPELINE_STAGES:
        output = _STAGE_FUNCTIONS[stage](current, resolved_settings)
        _check_stage_identity(stage, current, output)
        _log_stage_completion(stage, len(current), output)
        if on_stage is not None:
            on_stage(stage, output)
        issues.extend(output.issues)
        current = output.records
    return CleaningResult(
        records=current,
        issues=tuple(issues),
        recipe_steps=PIPELINE_STAGES,
        input_count=input_count,
    )


class CleaningPipelineRunner:
    """Runner for one clean invocation over a source."""

    def __init__(self, options: CleanOptions, config: MemberCleanConfig) -> None:
        self._options = options
        self._config = config
        self._settings = resolve_settings(_load_settings(options, config))
        self._store = RecordStore(config)

    def run(self) -> CleanRunSummary:
        """Execute the pipeline and return the created version summary."""
        raw_records = self._store.load(self._options.source_uri, self._settings)
        result = run_cleaning_stages(raw_records, self._settings, self._stage_callback())
        manifest = self._store.save(
            SnapshotWriteRequest(
                dataset_name=self._options.dataset_name,
                source_uri=self._options.source_uri,
                result=result,
            )
        )
        summary = CleanRunSummary(
            version_id=manifest.version_id,
            input_count=result.input_count,
            cleaned_count=len(result.records),
            excluded_count=len(result.excluded),
            flagged_count=len(result.flagged),
        )
        _log_cleaning_completion(self._options, summary)
        return summary

    def _stage_callback(self) -> StageCallback | None:
        if not self._options.keep_staging:
            return None
        staging = StagingStore(self._config.data_root, self._options.dataset_name)
        state = staging.reset(self._options.source_uri)

        def save_stage(stage: str, output: StageOutput) -> None:
            nonlocal state
            state = staging.save_stage(state, stage, output)

        return save_stage


def clean_dataset(options: CleanOptions, config: MemberCleanConfig) -> CleanRunSummary:
    """Clean a source and persist the result as a new dataset version.

    Args:
        options: Clean request options.
        config: Runtime configuration.

    Returns:
        Summary of the created version.

    Raises:
        MemberCleanConfigError: If settings are invalid.
        MemberCleanIngestError: If the source cannot be read.
        MemberCleanConstraintError: In strict mode, on date range violations.
        MemberCleanStoreError: If version persistence fails.
    """
    runner = CleaningPipelineRunner(options, config)
    return runner.run()


def _load_settings(options: CleanOptions, config: MemberCleanConfig) -> PipelineSettings:
    """Pick settings from options, then config, then defaults."""
    settings_path = options.settings_path or config.settings_path
    settings = load_settings_file(settings_path) if settings_path else PipelineSettings()
    if options.strict:
        settings = replace(settings, strict=True)
    return settings


def _as_member_record(record: MemberRecord | RawMemberRecord) -> MemberRecord:
    if isinstance(record, RawMemberRecord):
        return to_member_record(record)
    return record


def _check_unique_ids(records: tuple[MemberRecord, ...]) -> None:
    seen_ids: set[int] = set()
    for record in records:
        if record.member_id in seen_ids:
            raise MemberCleanTransformError(
                f"Duplicate member_id {record.member_id} in pipeline input. "
                "Assign unique member ids before cleaning."
            )
        seen_ids.add(record.member_id)


def _check_stage_identity(
    stage: str,
    stage_input: tuple[MemberRecord, ...],
    output: StageOutput,
) -> None:
    """Verify a stage only kept or removed records, never invented them."""
    input_ids = {record.member_id for record in stage_input}
    output_ids = [record.member_id for record in output.records]
    unknown_ids = sorted(set(output_ids) - input_ids)
    if unknown_ids or len(output_ids) != len(set(output_ids)):
        raise MemberCleanTransformError(
            f"Stage '{stage}' changed record identity "
            f"(unknown ids: {unknown_ids or '-'}, output count: {len(output_ids)})."
        )
    excluded_ids = {issue.member_id for issue in output.issues if issue.severity == "excluded"}
    missing_ids = input_ids - set(output_ids) - excluded_ids
    if missing_ids:
        raise MemberCleanTransformError(
            f"Stage '{stage}' dropped records without reporting them: {sorted(missing_ids)}."
        )


def _log_stage_completion(stage: str, input_count: int, output: StageOutput) -> None:
    _LOGGER.info(
        "stage_completed",
        stage=stage,
        input_count=input_count,
        output_count=len(output.records),
        excluded_count=sum(1 for issue in output.issues if issue.severity == "excluded"),
        flagged_count=sum(1 for issue in output.issues if issue.severity == "flagged"),
    )


def _log_cleaning_completion(options: CleanOptions, summary: CleanRunSummary) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "cleaning_completed",
        dataset_name=options.dataset_name,
        source_uri=options.source_uri,
        version_id=summary.version_id,
        input_count=summary.input_count,
        cleaned_count=summary.cleaned_count,
        excluded_count=summary.excluded_count,
        flagged_count=summary.flagged_count,
        strict=options.strict,
    )
