"""Tests for configuration helpers exposed to the UI."""

from __future__ import annotations

import os

import pytest

from notekeep import config


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch, tmp_path):
    """Ensure each test starts with a clean configuration environment."""

    env_path = tmp_path / ".env"
    monkeypatch.setattr(config, "_ENV_PATH", env_path)
    monkeypatch.setattr(config, "_settings", None)
    monkeypatch.chdir(tmp_path)

    for key in list(os.environ):
        if key.startswith("NOTEKEEP_"):
            monkeypatch.delenv(key, raising=False)

    yield


def test_list_environment_settings_reflects_defaults():
    entries = {entry.env_name: entry for entry in config.list_environment_settings()}

    assert "NOTEKEEP_DELETE_GRACE_SECONDS" in entries
    assert "NOTEKEEP_REPEAT_DELETE_POLICY" in entries
    assert "NOTEKEEP_SUMMARIZER_BACKEND" in entries
    assert entries["NOTEKEEP_DELETE_GRACE_SECONDS"].default == 5.0


def test_update_environment_setting_persists_and_reloads():
    updated = config.update_environment_setting("delete_grace_seconds", "2.5")

    assert updated.delete_grace_seconds == 2.5
    assert config.get_settings().delete_grace_seconds == 2.5
    assert os.environ["NOTEKEEP_DELETE_GRACE_SECONDS"] == "2.5"

    env_contents = config._ENV_PATH.read_text().strip().splitlines()  # type: ignore[attr-defined]
    assert "NOTEKEEP_DELETE_GRACE_SECONDS=2.5" in env_contents


def test_clear_environment_setting_removes_override():
    config.update_environment_setting("repeat_delete_policy", "reject")
    cleared = config.clear_environment_setting("repeat_delete_policy")

    assert cleared.repeat_delete_policy == "restart"
    assert "NOTEKEEP_REPEAT_DELETE_POLICY" not in os.environ
    assert not config._ENV_PATH.exists()  # type: ignore[attr-defined]


def test_invalid_value_is_rejected_and_previous_value_kept():
    config.update_environment_setting("delete_grace_seconds", "3")

    with pytest.raises(config.EnvironmentSettingError):
        config.update_environment_setting("delete_grace_seconds", "0")
    with pytest.raises(config.EnvironmentSettingError):
        config.update_environment_setting("repeat_delete_policy", "ignore")

    assert os.environ["NOTEKEEP_DELETE_GRACE_SECONDS"] == "3"
    assert "NOTEKEEP_REPEAT_DELETE_POLICY" not in os.environ
    assert config.get_settings().delete_grace_seconds == 3.0


def test_unknown_setting_is_rejected():
    with pytest.raises(config.EnvironmentSettingError):
        config.update_environment_setting("not_a_setting", "1")
