"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import MemberCleanConfig
from core.errors import MemberCleanConfigError
from tests.fixture_paths import fixture_path


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("MEMBER_CLEAN_DATA_ROOT", "./.tmp-member-clean")
    monkeypatch.delenv("MEMBER_CLEAN_SETTINGS", raising=False)

    config = MemberCleanConfig.from_env()

    assert config.data_root.name == ".tmp-member-clean"
    assert config.settings_path is None


def test_from_env_reads_settings_path(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve an existing settings file path."""
    monkeypatch.setenv("MEMBER_CLEAN_SETTINGS", str(fixture_path("settings/custom.yaml")))

    config = MemberCleanConfig.from_env()

    assert config.settings_path == fixture_path("settings/custom.yaml").resolve()


def test_from_env_raises_for_missing_settings_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    """Config should fail fast when the settings file does not exist."""
    monkeypatch.setenv("MEMBER_CLEAN_SETTINGS", str(tmp_path / "missing.yaml"))

    with pytest.raises(MemberCleanConfigError):
        MemberCleanConfig.from_env()
