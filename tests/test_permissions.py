from __future__ import annotations

from types import SimpleNamespace

from keeper.permissions import can_manage_backups


def member(id: int = 1, **perms: bool) -> SimpleNamespace:
    flags = {"administrator": False, "manage_guild": False, "manage_roles": False}
    flags.update(perms)
    return SimpleNamespace(id=id, guild_permissions=SimpleNamespace(**flags))


def test_admin_capabilities_are_accepted():
    assert can_manage_backups(member(administrator=True))
    assert can_manage_backups(member(manage_guild=True))
    assert can_manage_backups(member(manage_roles=True))


def test_plain_member_is_refused():
    assert not can_manage_backups(member())
    assert not can_manage_backups(None)


def test_owner_bypasses_guild_permissions():
    assert can_manage_backups(member(id=99), owner_id=99)
    assert not can_manage_backups(SimpleNamespace(id=5), owner_id=99)
