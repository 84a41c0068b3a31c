from __future__ import annotations

import pytest

from keeper.backup.builder import SnapshotBuilder
from keeper.backup.client import LiveOverwrite, LiveServer
from keeper.backup.models import ChannelKind, TargetKind
from keeper.backup.restore import validate_document
from keeper.errors import FetchError
from keeper.testing.fakes import FakeServerClient, fake_channel, fake_role

SERVER = LiveServer(id=42, name="Source")


@pytest.fixture
def source() -> FakeServerClient:
    roles = [
        fake_role(42, "@everyone", 0, is_default=True, permissions=104324673),
        fake_role(3, "Admin", 3, permissions=8, color=0xED4245, hoist=True),
        fake_role(1, "Member", 1),
        fake_role(2, "Mod", 2, mentionable=True),
    ]
    channels = [
        fake_channel(
            20,
            "chat",
            position=1,
            parent_id=10,
            topic="hello",
            overwrites=(
                LiveOverwrite(42, TargetKind.ROLE, 0, 1024),
                LiveOverwrite(2, TargetKind.ROLE, 1024, 0),
                LiveOverwrite(555, TargetKind.MEMBER, 0, 0),
            ),
        ),
        fake_channel(10, "General", ChannelKind.CATEGORY, position=0),
        fake_channel(30, "Voice", ChannelKind.VOICE, position=2, parent_id=10, bitrate=64000, user_limit=5),
    ]
    return FakeServerClient(server=SERVER, roles=roles, channels=channels)


async def test_roles_sorted_by_position_without_default(source):
    doc = await SnapshotBuilder(source).build(42)

    assert [r.name for r in doc.roles] == ["Member", "Mod", "Admin"]
    assert [r.position for r in doc.roles] == sorted(r.position for r in doc.roles)


async def test_role_fields_are_captured(source):
    doc = await SnapshotBuilder(source).build(42)

    admin = doc.roles[-1]
    assert admin.permissions == 8
    assert admin.color == 0xED4245
    assert admin.hoist is True
    # colour 0 means "no colour"
    assert doc.roles[0].color is None
    assert doc.roles[1].mentionable is True


async def test_channels_and_overwrites_are_captured(source):
    doc = await SnapshotBuilder(source).build(42)

    assert [c.name for c in doc.channels] == ["General", "chat", "Voice"]
    chat = doc.channels[1]
    assert chat.parent_source_id == "10"
    assert chat.topic == "hello"
    assert [(o.target_source_id, o.target_kind, o.allow, o.deny) for o in chat.overwrites] == [
        ("@everyone", TargetKind.ROLE, 0, 1024),
        ("Mod", TargetKind.ROLE, 1024, 0),
        ("555", TargetKind.MEMBER, 0, 0),
    ]
    voice = doc.channels[2]
    assert (voice.bitrate, voice.user_limit) == (64000, 5)
    assert doc.categories[0].parent_source_id is None


async def test_metadata_and_validity(source):
    doc = await SnapshotBuilder(source).build(42)

    assert doc.metadata.server_name == "Source"
    assert doc.metadata.server_id == 42
    assert doc.metadata.captured_at.tzinfo is not None
    validate_document(doc)


async def test_reads_happen_before_assembly(source):
    await SnapshotBuilder(source).build(42)

    assert source.call_names() == ["get_server", "list_roles", "list_channels"]


async def test_enumeration_failure_raises_fetch_error(source):
    source.fail_listing = True

    with pytest.raises(FetchError):
        await SnapshotBuilder(source).build(42)


async def test_role_overwrite_for_unknown_role_keeps_its_id():
    client = FakeServerClient(
        server=SERVER,
        channels=[fake_channel(1, "x", overwrites=(LiveOverwrite(99, TargetKind.ROLE, 1, 0),))],
    )

    doc = await SnapshotBuilder(client).build(42)

    assert doc.channels[0].overwrites[0].target_source_id == "99"
