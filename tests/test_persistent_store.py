# tests/test_persistent_store.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tasknest.errors import StorageReadError, StorageWriteError
from tasknest.storage.kv_store import SqliteKeyValueStore
from tasknest.storage.persistent_store import STORAGE_KEY, PersistentStore
from tasknest.tasks.task_models import Task

from .fakes import FailingKeyValueStore, MemoryKeyValueStore


@pytest.mark.asyncio
async def test_load_missing_key_returns_empty_list() -> None:
    store = PersistentStore(MemoryKeyValueStore())
    assert await store.load() == []


@pytest.mark.asyncio
async def test_save_then_load_roundtrip_on_sqlite(tmp_path: Path) -> None:
    store = PersistentStore(SqliteKeyValueStore(tmp_path / "store.sqlite3"))
    tasks = [
        Task(id="a", text="Buy milk"),
        Task(id="b", text="Ünïcødé ✓", completed=True),
        Task(id="c", text=""),
    ]

    await store.save(tasks)
    assert await store.load() == tasks

    # full overwrite, including the empty list
    await store.save([])
    assert await store.load() == []


@pytest.mark.asyncio
async def test_sqlite_data_survives_a_new_store_instance(tmp_path: Path) -> None:
    db = tmp_path / "store.sqlite3"
    await PersistentStore(SqliteKeyValueStore(db)).save([Task(id="x", text="persist me")])

    reopened = PersistentStore(SqliteKeyValueStore(db))
    assert await reopened.load() == [Task(id="x", text="persist me")]


@pytest.mark.asyncio
async def test_persisted_layout_is_a_json_array_under_tasks_key() -> None:
    backend = MemoryKeyValueStore()
    await PersistentStore(backend).save([Task(id="1", text="a", completed=True)])

    assert list(backend.data) == [STORAGE_KEY] == ["tasks"]
    assert json.loads(backend.data["tasks"]) == [{"id": "1", "text": "a", "completed": True}]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        '{"id": "1"}',
        '[{"id": 1, "text": "x", "completed": false}]',
        '[{"id": "1", "completed": false}]',
        '[{"id": "1", "text": "x", "completed": "yes"}]',
        '["just a string"]',
    ],
)
async def test_load_corrupt_blob_raises_read_error(raw: str) -> None:
    store = PersistentStore(MemoryKeyValueStore({"tasks": raw}))
    with pytest.raises(StorageReadError):
        await store.load()


@pytest.mark.asyncio
async def test_backend_faults_are_wrapped() -> None:
    backend = FailingKeyValueStore(fail_reads=True, fail_writes=True)
    store = PersistentStore(backend)

    with pytest.raises(StorageReadError):
        await store.load()
    with pytest.raises(StorageWriteError):
        await store.save([Task(id="1", text="a")])


@pytest.mark.asyncio
async def test_garbage_sqlite_file_fails_on_use_not_on_open(tmp_path: Path) -> None:
    db = tmp_path / "store.sqlite3"
    db.write_bytes(b"this is not a sqlite database" * 100)

    store = PersistentStore(SqliteKeyValueStore(db))

    with pytest.raises(StorageReadError):
        await store.load()
    with pytest.raises(StorageWriteError):
        await store.save([Task(id="1", text="a")])
