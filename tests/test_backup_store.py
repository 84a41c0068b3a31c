from __future__ import annotations

from dataclasses import replace

import aiosqlite
import pytest

from keeper.backup.models import DocumentMetadata
from keeper.errors import KeeperError, ValidationError
from keeper.services.cache import TTLCache


async def test_save_and_get(store, scenario_document):
    record_id = await store.save(42, "nightly", scenario_document)

    assert await store.get(record_id) == scenario_document
    record = await store.get_record(record_id)
    assert (record.id, record.guild_id, record.name) == (record_id, 42, "nightly")


async def test_get_missing_returns_none(store):
    assert await store.get(999) is None
    assert await store.get_record(999) is None


async def test_list_is_scoped_and_newest_first(store, scenario_document):
    first = await store.save(42, "one", scenario_document)
    second = await store.save(42, "two", scenario_document)
    other = replace(scenario_document, metadata=DocumentMetadata(server_name="Other", server_id=7))
    await store.save(7, "elsewhere", other)

    records = await store.list(42)

    assert [r.id for r in records] == [second, first]
    assert [r.id for r in await store.list(42, limit=1)] == [second]
    assert [r.name for r in await store.list(7)] == ["elsewhere"]


async def test_delete(store, scenario_document):
    record_id = await store.save(42, "gone", scenario_document)
    assert await store.get(record_id) is not None

    assert await store.delete(record_id) is True
    assert await store.get(record_id) is None
    assert await store.delete(record_id) is False


async def test_corrupt_payload_is_a_validation_error(store, scenario_document):
    record_id = await store.save(42, "broken", scenario_document)
    async with aiosqlite.connect(store._path) as db:
        await db.execute("UPDATE backups SET payload_json = ? WHERE id = ?", ("{not json", record_id))
        await db.commit()

    with pytest.raises(ValidationError) as excinfo:
        await store.get(record_id)
    assert isinstance(excinfo.value, KeeperError)


def test_expired_entries_are_swept_on_write(monkeypatch):
    now = [100.0]
    monkeypatch.setattr("keeper.services.cache.time.monotonic", lambda: now[0])
    cache = TTLCache(default_ttl_seconds=10)
    cache.set(1, "old")

    now[0] += 11
    cache.set(2, "new")

    assert 1 not in cache._store
    assert cache.get(2) == "new"
