"""Per-stage staging snapshots.

This module keeps the output of every cleaning stage on disk so a run
can be audited stage by stage. Each run replaces the previous staging
area of the dataset.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import json
from pathlib import Path

from core.constants import DATASETS_DIR_NAME, STAGING_DIR_NAME
from core.errors import MemberCleanStoreError
from core.logging_config import get_logger
from core.types import MemberRecord, RecordIssue, StageOutput
from store.record_payload import (
    issue_from_payload,
    issue_to_payload,
    member_record_from_payload,
    member_record_to_payload,
    read_jsonl,
    write_jsonl,
)

_LOGGER = get_logger(__name__)
_STATE_FILE_NAME = "state.json"


@dataclass(frozen=True)
class StagingState:
    """Staging area metadata."""

    source_uri: str
    stages: tuple[str, ...]


class StagingStore:
    """Filesystem-backed staging area for one dataset."""

    def __init__(self, data_root: Path, dataset_name: str) -> None:
        self._staging_dir = data_root / DATASETS_DIR_NAME / dataset_name / STAGING_DIR_NAME

    def reset(self, source_uri: str) -> StagingState:
        """Clear staging files and start a new staging run.

        Args:
            source_uri: Source being cleaned.

        Returns:
            Empty staging state.
        """
        self._staging_dir.mkdir(parents=True, exist_ok=True)
        for file_path in self._staging_dir.glob("*"):
            if file_path.is_file():
                file_path.unlink()
        state = StagingState(source_uri=source_uri, stages=())
        self._write_state(state)
        return state

    def save_stage(self, state: StagingState, stage: str, output: StageOutput) -> StagingState:
        """Persist one stage output and record it in staging state.

        Args:
            state: Current staging state.
            stage: Stage name.
            output: Stage output to persist.

        Returns:
            Updated staging state.
        """
        position = len(state.stages) + 1
        write_jsonl(self._records_path(position, stage), output.records, member_record_to_payload)
        write_jsonl(self._issues_path(position, stage), output.issues, issue_to_payload)
        updated_state = StagingState(source_uri=state.source_uri, stages=state.stages + (stage,))
        self._write_state(updated_state)
        _LOGGER.info(
            "staging_written",
            stage=stage,
            position=position,
            record_count=len(output.records),
            issue_count=len(output.issues),
        )
        return updated_state

    def read_state(self) -> StagingState:
        """Read staging state.

        Raises:
            MemberCleanStoreError: If state is missing or unreadable.
        """
        state_path = self._staging_dir / _STATE_FILE_NAME
        if not state_path.exists():
            raise MemberCleanStoreError(
                f"Staging state not found at {state_path}. Run clean with staging enabled."
            )
        try:
            payload = json.loads(state_path.read_text(encoding="utf-8"))
            return StagingState(
                source_uri=str(payload["source_uri"]),
                stages=tuple(str(stage) for stage in payload["stages"]),
            )
        except (json.JSONDecodeError, KeyError, TypeError) as error:
            raise MemberCleanStoreError(
                f"Failed to read staging state at {state_path}: {error}. "
                "Delete the staging directory and rerun clean."
            ) from error

    def load_stage_records(self, stage: str) -> list[MemberRecord]:
        """Load the records a stage produced."""
        position = self._stage_position(stage)
        return read_jsonl(self._records_path(position, stage), member_record_from_payload)

    def load_stage_issues(self, stage: str) -> list[RecordIssue]:
        """Load the issues a stage raised."""
        position = self._stage_position(stage)
        return read_jsonl(self._issues_path(position, stage), issue_from_payload)

    def _stage_position(self, stage: str) -> int:
        stages = self.read_state().stages
        if stage not in stages:
            raise MemberCleanStoreError(
                f"Stage '{stage}' has no staging output. Staged stages: {', '.join(stages) or '-'}."
            )
        return stages.index(stage) + 1

    def _write_state(self, state: StagingState) -> None:
        state_path = self._staging_dir / _STATE_FILE_NAME
        payload = asdict(state)
        payload["stages"] = list(state.stages)
        state_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    def _records_path(self, position: int, stage: str) -> Path:
        return self._staging_dir / f"{position:02d}_{stage}.records.jsonl"

    def _issues_path(self, position: int, stage: str) -> Path:
        return self._staging_dir / f"{position:02d}_{stage}.issues.jsonl"
