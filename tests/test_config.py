from __future__ import annotations

import pytest

from keeper.config import load_settings


def test_token_is_required(monkeypatch):
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)

    with pytest.raises(RuntimeError):
        load_settings()


def test_defaults(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    for name in ("SQLITE_PATH", "PREFIX", "BACKUP_LIST_LIMIT", "PREFIX_COMMANDS_ENABLED", "OWNER_ID"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.sqlite_path == "data/backups.sqlite3"
    assert settings.prefix == "k!"
    assert settings.backup_list_limit == 25
    assert settings.prefix_commands_enabled is True
    assert settings.owner_id == 0


def test_overrides_and_bad_values(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    monkeypatch.setenv("OWNER_ID", "not-a-number")
    monkeypatch.setenv("PREFIX_COMMANDS_ENABLED", "off")
    monkeypatch.setenv("RESTORE_MIN_INTERVAL_MS", "0")
    monkeypatch.setenv("PREFIX", "  ")

    settings = load_settings()

    assert settings.owner_id == 0
    assert settings.prefix_commands_enabled is False
    assert settings.restore_min_interval_ms == 0
    assert settings.prefix == "k!"
