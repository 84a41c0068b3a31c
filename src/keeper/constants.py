from __future__ import annotations

from typing import Final

# Discord limits
MAX_MESSAGE_LENGTH: Final[int] = 2000
MAX_EMBED_DESCRIPTION: Final[int] = 4096
MAX_EMBED_TITLE: Final[int] = 256

# Restore reporting
MAX_WARNINGS_SHOWN: Final[int] = 10
PROGRESS_UPDATE_INTERVAL_SECONDS: Final[float] = 2.0

CACHE_TTL_SECONDS: Final[int] = 120

# Colors (hex values)
COLORS = {
    "default": 0x5865F2,
    "error": 0xED4245,
}

ERROR_MESSAGES = {
    "missing_permissions": "You need Administrator, Manage Server or Manage Roles to use backups.",
    "guild_only": "Backups can only be managed inside a server.",
    "not_found": "Backup not found.",
    "unexpected": "Something went wrong running that command.",
}
