# src/tasknest/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the key-value backend, PersistentStore and TaskStore into AppState.

Callers hold the TaskStore through AppState; there is no module-level store.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..storage.kv_store import SqliteKeyValueStore
from ..storage.persistent_store import PersistentStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    The TaskStore is not loaded yet: await state.task_store.initialize().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    backend = SqliteKeyValueStore(settings.store_db_path)
    task_store = TaskStore(PersistentStore(backend))

    return AppState(settings=settings, task_store=task_store)


async def shutdown(state: AppState) -> None:
    """Best-effort shutdown: flush pending saves (no exceptions should escape)."""
    try:
        await state.task_store.aclose()
    except Exception:
        logger.exception("Failed to flush pending saves.")
