from __future__ import annotations

from datetime import datetime, timezone

import pytest

from keeper.backup.models import (
    ChannelKind,
    ChannelSpec,
    DocumentMetadata,
    PermissionOverwrite,
    TargetKind,
    TopologyDocument,
)
from keeper.services.backup_store import BackupStore
from keeper.testing.fakes import FakeServerClient, role_spec


@pytest.fixture
def metadata() -> DocumentMetadata:
    return DocumentMetadata(
        server_name="Source",
        server_id=42,
        captured_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )


@pytest.fixture
def scenario_document(metadata: DocumentMetadata) -> TopologyDocument:
    """Two roles, one category and one text channel with a role overwrite."""
    return TopologyDocument(
        metadata=metadata,
        roles=(role_spec("Mod", 1), role_spec("VIP", 2)),
        channels=(
            ChannelSpec(source_id="c1", name="General", kind=ChannelKind.CATEGORY, position=0),
            ChannelSpec(
                source_id="c2",
                name="chat",
                kind=ChannelKind.TEXT,
                position=0,
                parent_source_id="c1",
                overwrites=(PermissionOverwrite("Mod", TargetKind.ROLE, allow=8, deny=0),),
            ),
        ),
    )


@pytest.fixture
def client() -> FakeServerClient:
    return FakeServerClient()


@pytest.fixture
async def store(tmp_path) -> BackupStore:
    s = BackupStore(str(tmp_path / "backups.sqlite3"), cache_ttl=60)
    await s.init()
    return s
