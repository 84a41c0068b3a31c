"""
Text rendering for backup commands.

Discord messages are capped at 2000 characters, so long output is split
on line boundaries into several messages.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from ..constants import MAX_MESSAGE_LENGTH, MAX_WARNINGS_SHOWN
from ..services.backup_store import BackupRecord
from .restore import RestoreReport


def format_backup_line(record: BackupRecord) -> str:
    created = datetime.fromtimestamp(record.created_at / 1000, tz=timezone.utc)
    return f"ID: {record.id} | {record.name} | {created:%Y-%m-%d %H:%M} UTC"


def format_restore_report(record_id: int, report: RestoreReport, max_warnings: int = MAX_WARNINGS_SHOWN) -> str:
    lines = [
        f"Backup {record_id} restored (best-effort).",
        f"Created {report.roles_created} roles, {report.categories_created} categories, "
        f"{report.channels_created} channels and {report.overwrites_applied} overwrites.",
    ]
    if report.warnings:
        lines.append(f"{len(report.warnings)} warning(s):")
        lines.extend(f"- {w}" for w in report.warnings[:max_warnings])
        hidden = len(report.warnings) - max_warnings
        if hidden > 0:
            lines.append(f"... and {hidden} more")
    return "\n".join(lines)


def chunk_lines(lines: Iterable[str], limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Join lines into messages no longer than ``limit``; overlong lines are truncated."""
    chunks: List[str] = []
    current = ""
    for line in lines:
        if len(line) > limit:
            line = line[: limit - 1] + "…"
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks
