"""Core constants used across member-clean modules.

This module centralizes defaults for pipeline settings and store layout.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

DEFAULT_DATA_ROOT = Path(".member_clean")
DATASETS_DIR_NAME = "datasets"
VERSIONS_DIR_NAME = "versions"
STAGING_DIR_NAME = "staging"
CATALOG_FILE_NAME = "catalog.json"
MANIFEST_FILE_NAME = "manifest.json"
RECORDS_FILE_NAME = "records.jsonl"
ISSUES_FILE_NAME = "issues.jsonl"
SUPPORTED_SOURCE_EXTENSIONS = (".csv", ".jsonl")
SETTINGS_FILE_VERSION = 1

DEFAULT_AMBIGUOUS_YEAR_LOWER = 0
DEFAULT_AMBIGUOUS_YEAR_UPPER = 20
DEFAULT_PARSE_CENTURY = 2000
CENTURY_SHIFT_YEARS = 100
DEFAULT_MIN_MEMBERSHIP_DATE = date(1900, 1, 1)
DEFAULT_DATE_FORMATS = ("%Y-%m-%d", "%y-%m-%d", "%m/%d/%Y", "%m/%d/%y")
DEFAULT_ADDRESS_CORRECTIONS = {"Tej+F823as": "Texas"}
DEFAULT_LEVEL_SUFFIXES = {"i": 1, "ii": 2, "iii": 3, "iv": 4}
DEFAULT_HONORIFICS = ("mr", "mrs", "ms", "miss", "mx", "dr", "prof", "sir")

REQUIRED_SOURCE_COLUMNS = (
    "full_name",
    "full_address",
    "membership_date",
    "job_title",
    "email",
    "phone",
)
MEMBER_ID_COLUMN = "member_id"
EXPORT_COLUMNS = (
    "member_id",
    "first_name",
    "last_name",
    "street",
    "city",
    "state",
    "membership_date",
    "job_title",
    "email",
    "phone",
)

STAGE_NAME_NORMALIZATION = "name_normalization"
STAGE_ADDRESS_PARSING = "address_parsing"
STAGE_TEMPORAL_CORRECTION = "temporal_correction"
STAGE_CATEGORY_STANDARDIZATION = "category_standardization"
STAGE_DEDUPLICATION = "deduplication"
PIPELINE_STAGES = (
    STAGE_NAME_NORMALIZATION,
    STAGE_ADDRESS_PARSING,
    STAGE_TEMPORAL_CORRECTION,
    STAGE_CATEGORY_STANDARDIZATION,
    STAGE_DEDUPLICATION,
)
