"""Pipeline settings model and YAML settings loader.

This module owns every tunable of the cleaning stages: the ambiguous
year band, the valid date range, the address correction table, the
roman-numeral level mapping, honorifics and accepted date formats.
Settings are validated once, before any record is processed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping, Sequence, cast

import yaml

from core.constants import (
    DEFAULT_ADDRESS_CORRECTIONS,
    DEFAULT_AMBIGUOUS_YEAR_LOWER,
    DEFAULT_AMBIGUOUS_YEAR_UPPER,
    DEFAULT_DATE_FORMATS,
    DEFAULT_HONORIFICS,
    DEFAULT_LEVEL_SUFFIXES,
    DEFAULT_MIN_MEMBERSHIP_DATE,
    DEFAULT_PARSE_CENTURY,
    SETTINGS_FILE_VERSION,
)
from core.errors import MemberCleanConfigError

_SECTION_KEYS: dict[str, set[str]] = {
    "temporal": {"ambiguous_years", "parse_century", "min_date", "max_date"},
    "address": {"corrections"},
    "job_title": {"level_suffixes"},
    "names": {"honorifics"},
    "ingest": {"date_formats"},
}


@dataclass(frozen=True)
class PipelineSettings:
    """Tunables for the five cleaning stages.

    Attributes:
        ambiguous_year_lower: Lowest two-digit year treated as ambiguous.
        ambiguous_year_upper: Highest two-digit year treated as ambiguous.
        parse_century: Century the loader maps two-digit years into.
        min_date: Earliest valid membership date.
        max_date: Latest valid membership date; today when None.
        address_corrections: Corrupted state token to canonical value.
        level_suffixes: Trailing job-title token to level number, in match order.
        honorifics: Leading name tokens dropped during name normalization.
        date_formats: strptime formats tried in order by the loader.
        strict: Raise instead of excluding constraint violations.
    """

    ambiguous_year_lower: int = DEFAULT_AMBIGUOUS_YEAR_LOWER
    ambiguous_year_upper: int = DEFAULT_AMBIGUOUS_YEAR_UPPER
    parse_century: int = DEFAULT_PARSE_CENTURY
    min_date: date = DEFAULT_MIN_MEMBERSHIP_DATE
    max_date: date | None = None
    address_corrections: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_ADDRESS_CORRECTIONS)
    )
    level_suffixes: Mapping[str, int] = field(
        default_factory=lambda: dict(DEFAULT_LEVEL_SUFFIXES)
    )
    honorifics: tuple[str, ...] = DEFAULT_HONORIFICS
    date_formats: tuple[str, ...] = DEFAULT_DATE_FORMATS
    strict: bool = False


def resolve_settings(settings: PipelineSettings, today: date | None = None) -> PipelineSettings:
    """Pin the open upper date bound and validate the result.

    Args:
        settings: Settings as configured.
        today: Optional reference date; ``date.today()`` when omitted.

    Returns:
        Validated settings with a concrete ``max_date``.

    Raises:
        MemberCleanConfigError: If any setting is invalid.
    """
    resolved = settings
    if settings.max_date is None:
        resolved = replace(settings, max_date=today or date.today())
    validate_settings(resolved)
    return resolved


def validate_settings(settings: PipelineSettings) -> None:
    """Fail fast on invalid pipeline settings.

    Args:
        settings: Settings to check.

    Raises:
        MemberCleanConfigError: If any setting is invalid.
    """
    _validate_year_band(settings.ambiguous_year_lower, settings.ambiguous_year_upper)
    if not _is_int(settings.parse_century) or settings.parse_century % 100 != 0:
        raise MemberCleanConfigError(
            f"Invalid parse century {settings.parse_century!r}: expected a multiple of 100 "
            "such as 2000."
        )
    _validate_date_bound(settings.min_date, "min_date")
    if settings.max_date is not None:
        _validate_date_bound(settings.max_date, "max_date")
    if settings.max_date is not None and settings.min_date > settings.max_date:
        raise MemberCleanConfigError(
            f"Invalid membership date range {settings.min_date}..{settings.max_date}: "
            "min_date must not be after max_date."
        )
    _validate_corrections(settings.address_corrections)
    _validate_level_suffixes(settings.level_suffixes)
    if not settings.date_formats or not all(
        isinstance(value, str) and value for value in settings.date_formats
    ):
        raise MemberCleanConfigError(
            "Invalid date formats: provide at least one non-empty strptime format."
        )
    if not all(isinstance(value, str) and value.strip() for value in settings.honorifics):
        raise MemberCleanConfigError("Invalid honorifics: expected non-empty strings.")


def load_settings_file(settings_path: str | Path) -> PipelineSettings:
    """Load and validate a YAML settings file.

    Args:
        settings_path: File path to the YAML settings.

    Returns:
        Parsed pipeline settings. ``max_date`` stays open unless set.

    Raises:
        MemberCleanConfigError: If the file is missing, unparseable or invalid.
    """
    root_mapping = _expect_mapping(_load_yaml_payload(settings_path), "settings root")
    _validate_keys(root_mapping, {"version", "strict", *_SECTION_KEYS}, "settings root")
    _parse_version(root_mapping)
    overrides: dict[str, Any] = {}
    for section_name, allowed_keys in _SECTION_KEYS.items():
        raw_section = root_mapping.get(section_name)
        if raw_section is None:
            continue
        section = _expect_mapping(raw_section, f"settings section '{section_name}'")
        _validate_keys(section, allowed_keys, f"settings section '{section_name}'")
        overrides.update(_parse_section(section_name, section))
    if "strict" in root_mapping:
        overrides["strict"] = _expect_bool(root_mapping["strict"], "strict")
    settings = PipelineSettings(**overrides)
    validate_settings(settings)
    return settings


def _load_yaml_payload(settings_path: str | Path) -> object:
    settings_file = Path(settings_path).expanduser().resolve()
    if not settings_file.exists():
        raise MemberCleanConfigError(
            f"Settings file does not exist at {settings_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(settings_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise MemberCleanConfigError(
            f"Failed to read settings at {settings_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise MemberCleanConfigError(
            f"Failed to parse YAML settings at {settings_file}: {error}. Fix YAML syntax."
        ) from error
    if payload is None:
        raise MemberCleanConfigError(
            f"Settings file at {settings_file} is empty. Define at least 'version: 1'."
        )
    return payload


def _parse_section(section_name: str, section: Mapping[str, object]) -> dict[str, object]:
    if section_name == "temporal":
        return _parse_temporal_section(section)
    if section_name == "address":
        corrections = _expect_mapping(section.get("corrections", {}), "address corrections")
        return {"address_corrections": dict(corrections)}
    if section_name == "job_title":
        suffixes = _expect_mapping(section.get("level_suffixes", {}), "job title level_suffixes")
        return {"level_suffixes": dict(suffixes)}
    if section_name == "names":
        honorifics = _expect_sequence(section.get("honorifics", ()), "names honorifics")
        return {"honorifics": tuple(str(value) for value in honorifics)}
    formats = _expect_sequence(section.get("date_formats", ()), "ingest date_formats")
    return {"date_formats": tuple(str(value) for value in formats)}


def _parse_temporal_section(section: Mapping[str, object]) -> dict[str, object]:
    parsed: dict[str, object] = {}
    if "ambiguous_years" in section:
        band = _expect_sequence(section["ambiguous_years"], "temporal ambiguous_years")
        if len(band) != 2:
            raise MemberCleanConfigError(
                "Settings field 'temporal.ambiguous_years' must be a [lower, upper] pair."
            )
        parsed["ambiguous_year_lower"] = band[0]
        parsed["ambiguous_year_upper"] = band[1]
    if "parse_century" in section:
        parsed["parse_century"] = section["parse_century"]
    if "min_date" in section:
        parsed["min_date"] = _parse_date_value(section["min_date"], "temporal.min_date")
    if section.get("max_date") is not None:
        parsed["max_date"] = _parse_date_value(section["max_date"], "temporal.max_date")
    return parsed


def _parse_date_value(raw_value: object, field_name: str) -> date:
    if isinstance(raw_value, datetime):
        raise MemberCleanConfigError(
            f"Settings field '{field_name}' must be a date without a time, got '{raw_value}'."
        )
    if isinstance(raw_value, date):
        return raw_value
    if isinstance(raw_value, str):
        try:
            return date.fromisoformat(raw_value.strip())
        except ValueError as error:
            raise MemberCleanConfigError(
                f"Settings field '{field_name}' must be an ISO date (YYYY-MM-DD), "
                f"got '{raw_value}'."
            ) from error
    raise MemberCleanConfigError(
        f"Settings field '{field_name}' must be a date, got {type(raw_value).__name__}."
    )


def _parse_version(root_mapping: Mapping[str, object]) -> None:
    raw_version = root_mapping.get("version")
    if not _is_int(raw_version):
        raise MemberCleanConfigError("Settings field 'version' must be an integer. Set version: 1.")
    if raw_version != SETTINGS_FILE_VERSION:
        raise MemberCleanConfigError(
            f"Unsupported settings version {raw_version}. Use version: {SETTINGS_FILE_VERSION}."
        )


def _validate_date_bound(value: object, field_name: str) -> None:
    if not isinstance(value, date) or isinstance(value, datetime):
        raise MemberCleanConfigError(
            f"Invalid {field_name} {value!r}: expected a calendar date such as 1900-01-01."
        )


def _validate_year_band(lower: object, upper: object) -> None:
    if not _is_int(lower) or not _is_int(upper):
        raise MemberCleanConfigError(
            f"Invalid ambiguous year band ({lower!r}, {upper!r}): bounds must be integers."
        )
    if not 0 <= cast(int, lower) <= cast(int, upper) <= 99:
        raise MemberCleanConfigError(
            f"Invalid ambiguous year band ({lower}, {upper}): "
            "expected 0 <= lower <= upper <= 99."
        )


def _validate_corrections(corrections: Mapping[str, str]) -> None:
    if not isinstance(corrections, Mapping):
        raise MemberCleanConfigError("Address corrections must be a mapping of token to value.")
    for bad_token, canonical in corrections.items():
        if not isinstance(bad_token, str) or not bad_token.strip():
            raise MemberCleanConfigError(
                f"Invalid address correction key {bad_token!r}: expected a non-empty string."
            )
        if not isinstance(canonical, str) or not canonical.strip():
            raise MemberCleanConfigError(
                f"Invalid address correction for '{bad_token}': expected a non-empty string."
            )


def _validate_level_suffixes(level_suffixes: Mapping[str, int]) -> None:
    if not isinstance(level_suffixes, Mapping):
        raise MemberCleanConfigError("Level suffixes must be a mapping of token to level.")
    seen_levels: set[int] = set()
    for token, level in level_suffixes.items():
        if not isinstance(token, str) or not token or token != token.strip().lower():
            raise MemberCleanConfigError(
                f"Invalid level suffix {token!r}: expected a lowercase token."
            )
        if len(token.split()) != 1:
            raise MemberCleanConfigError(
                f"Invalid level suffix '{token}': suffixes must be a single token."
            )
        if not _is_int(level) or level < 1:
            raise MemberCleanConfigError(
                f"Invalid level for suffix '{token}': expected a positive integer, got {level!r}."
            )
        if level in seen_levels:
            raise MemberCleanConfigError(
                f"Duplicate level {level} in level suffixes. Map each level once."
            )
        seen_levels.add(level)


def _validate_keys(mapping: Mapping[str, object], allowed_keys: set[str], context: str) -> None:
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise MemberCleanConfigError(
            f"Invalid {context}: unknown fields {', '.join(unknown_keys)}."
        )


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise MemberCleanConfigError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise MemberCleanConfigError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise MemberCleanConfigError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _expect_bool(value: object, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise MemberCleanConfigError(f"Settings field '{field_name}' must be true or false.")


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
