from __future__ import annotations

from keeper.backup.reporting import chunk_lines, format_backup_line, format_restore_report
from keeper.backup.restore import EntityType, RestoreReport, RestoreState
from keeper.services.backup_store import BackupRecord


def test_backup_line():
    record = BackupRecord(id=3, guild_id=42, name="nightly", created_at=1_700_000_000_000)

    assert format_backup_line(record) == "ID: 3 | nightly | 2023-11-14 22:13 UTC"


def test_restore_report_lists_warnings():
    report = RestoreReport(state=RestoreState.COMPLETE, roles_created=2, channels_created=1)
    for i in range(12):
        report.warn(EntityType.ROLE, f"r{i}", "Missing Permissions")

    text = format_restore_report(9, report, max_warnings=10)

    assert text.startswith("Backup 9 restored (best-effort).")
    assert "12 warning(s):" in text
    assert "- role r0: Missing Permissions" in text
    assert "r10" not in text
    assert text.endswith("... and 2 more")


def test_chunk_lines_respects_limit():
    lines = [f"line {i:03d}" for i in range(50)]

    chunks = chunk_lines(lines, limit=100)

    assert all(len(c) <= 100 for c in chunks)
    assert "\n".join(chunks).split("\n") == lines


def test_chunk_lines_truncates_overlong_line():
    assert chunk_lines(["x" * 30], limit=10) == ["x" * 9 + "…"]
