"""Public SDK surface for member-clean.

This module provides a stable import path for library users.
It re-exports the primary client, the stage runner and typed models.
"""

from __future__ import annotations

from core.config import MemberCleanConfig
from core.settings import PipelineSettings, load_settings_file
from core.types import (
    CleaningResult,
    CleanOptions,
    CleanRunSummary,
    MemberFilter,
    MemberRecord,
    RawMemberRecord,
    RecordIssue,
)
from ingest.pipeline import run_cleaning_stages
from store.member_sdk import Dataset, MemberCleanClient

__all__ = [
    "CleanOptions",
    "CleanRunSummary",
    "CleaningResult",
    "Dataset",
    "MemberCleanClient",
    "MemberCleanConfig",
    "MemberFilter",
    "MemberRecord",
    "PipelineSettings",
    "RawMemberRecord",
    "RecordIssue",
    "load_settings_file",
    "run_cleaning_stages",
]
