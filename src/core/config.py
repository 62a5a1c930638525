"""Runtime configuration model for member-clean.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_DATA_ROOT
from core.errors import MemberCleanConfigError


@dataclass(frozen=True)
class MemberCleanConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for catalogs and versions.
        settings_path: Optional YAML pipeline settings file.
    """

    data_root: Path
    settings_path: Path | None = None

    @classmethod
    def from_env(cls) -> "MemberCleanConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            MemberCleanConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("MEMBER_CLEAN_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        settings_value = os.getenv("MEMBER_CLEAN_SETTINGS")
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            settings_path=_parse_settings_path(settings_value),
        )


def _parse_settings_path(raw_value: str | None) -> Path | None:
    """Parse the settings file environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Resolved settings path, or None when unset.

    Raises:
        MemberCleanConfigError: If the path does not point at a file.
    """
    if raw_value is None or not raw_value.strip():
        return None
    settings_path = Path(raw_value.strip()).expanduser().resolve()
    if not settings_path.is_file():
        raise MemberCleanConfigError(
            "Invalid MEMBER_CLEAN_SETTINGS value: "
            f"no settings file at '{settings_path}'. "
            "Point MEMBER_CLEAN_SETTINGS at an existing YAML file or unset it."
        )
    return settings_path
