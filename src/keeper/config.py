from __future__ import annotations

import os
from dataclasses import dataclass


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "y", "on"}


def _get_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


@dataclass(frozen=True)
class Settings:
    token: str
    sync_guild_id: int
    owner_id: int
    sqlite_path: str
    log_level: str
    cache_default_ttl_seconds: int
    # Prefix commands require message content intent in the Discord Developer Portal.
    prefix: str = "k!"
    prefix_commands_enabled: bool = True
    message_content_intent: bool = True

    backup_list_limit: int = 25
    # Pacing and 429 handling for the discord client, not the restore engine
    restore_min_interval_ms: int = 250
    restore_max_retries: int = 3
    audit_reason: str = "Keeper backup restore"


def load_settings() -> Settings:
    token = os.getenv("DISCORD_TOKEN", "").strip()
    if not token:
        raise RuntimeError("DISCORD_TOKEN is required")
    return Settings(
        token=token,
        sync_guild_id=_get_int("SYNC_GUILD_ID", 0),
        # Default to 0 to avoid accidentally granting owner powers to a random ID
        owner_id=_get_int("OWNER_ID", 0),
        sqlite_path=_get_str("SQLITE_PATH", "data/backups.sqlite3"),
        log_level=_get_str("LOG_LEVEL", "INFO"),
        cache_default_ttl_seconds=_get_int("CACHE_DEFAULT_TTL_SECONDS", 120),
        prefix=_get_str("PREFIX", "k!"),
        prefix_commands_enabled=_get_bool("PREFIX_COMMANDS_ENABLED", True),
        message_content_intent=_get_bool("MESSAGE_CONTENT_INTENT", True),
        backup_list_limit=max(1, _get_int("BACKUP_LIST_LIMIT", 25)),
        restore_min_interval_ms=max(0, _get_int("RESTORE_MIN_INTERVAL_MS", 250)),
        restore_max_retries=max(0, _get_int("RESTORE_MAX_RETRIES", 3)),
        audit_reason=_get_str("AUDIT_REASON", "Keeper backup restore"),
    )
