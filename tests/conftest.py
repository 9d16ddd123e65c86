# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasknest.core.state import AppState
from tasknest.storage.persistent_store import PersistentStore
from tasknest.tasks.task_store import TaskStore

from .fakes import MemoryKeyValueStore, SequentialIds


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the console.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasknest-test",
        log_level="DEBUG",
        exit_delay_ms=0,
        data_dir=tmp_path,
        store_db_path=tmp_path / "store.sqlite3",
    )


@pytest.fixture()
def backend() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def persistent(backend: MemoryKeyValueStore) -> PersistentStore:
    return PersistentStore(backend)


@pytest.fixture()
def task_store(persistent: PersistentStore) -> TaskStore:
    """
    TaskStore over an in-memory backend with predictable ids (t1, t2, ...).

    Outside a running event loop saves are only recorded; async tests call flush().
    """
    return TaskStore(persistent, id_factory=SequentialIds())


@pytest.fixture()
def state(settings: SimpleNamespace, task_store: TaskStore) -> AppState:
    return AppState(settings=settings, task_store=task_store)
