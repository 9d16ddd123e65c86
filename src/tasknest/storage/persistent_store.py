# src/tasknest/storage/persistent_store.py

"""
Durable task-list storage on top of an async key-value backend.

Layout: one fixed key ("tasks") whose value is a UTF-8 JSON array of
{"id": str, "text": str, "completed": bool}. There is no schema version
field, so any change to this shape breaks existing installs.

Every save is a full-list overwrite; there is no partial update.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from ..core.ports import KeyValueBackend
from ..errors import StorageReadError, StorageWriteError
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

STORAGE_KEY = "tasks"


def encode_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)


def decode_tasks(raw: str) -> list[Task]:
    """Parse a stored blob. Raises StorageReadError on anything malformed."""
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise StorageReadError(f"stored tasks are not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise StorageReadError(f"stored tasks must be a JSON array, got {type(data).__name__}")

    out: list[Task] = []
    for i, item in enumerate(data):
        out.append(_task_from_obj(i, item))
    return out


def _task_from_obj(index: int, item: Any) -> Task:
    if not isinstance(item, dict):
        raise StorageReadError(f"task #{index} is not an object")

    task_id = item.get("id")
    text = item.get("text")
    completed = item.get("completed", False)

    if not isinstance(task_id, str) or not task_id:
        raise StorageReadError(f"task #{index} has no string id")
    if not isinstance(text, str):
        raise StorageReadError(f"task #{index} (id={task_id}) has no string text")
    if not isinstance(completed, bool):
        raise StorageReadError(f"task #{index} (id={task_id}) has non-boolean completed")

    return Task(id=task_id, text=text, completed=completed)


class PersistentStore:
    """Loads/saves the whole task list under a single key."""

    def __init__(self, backend: KeyValueBackend, *, key: str = STORAGE_KEY) -> None:
        self._backend = backend
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> list[Task]:
        """
        Read and decode the stored list.

        Missing key -> [].
        Corrupt blob or backend failure -> StorageReadError.
        """
        try:
            raw = await self._backend.get_item(self._key)
        except Exception as e:
            raise StorageReadError(f"failed to read key={self._key!r}: {e}") from e

        if raw is None:
            logger.debug("No stored tasks under key=%s", self._key)
            return []

        tasks = decode_tasks(raw)
        logger.debug("Loaded %d tasks from key=%s", len(tasks), self._key)
        return tasks

    async def save(self, tasks: Iterable[Task]) -> None:
        """Overwrite the stored list. Backend failure -> StorageWriteError."""
        items = list(tasks)
        payload = encode_tasks(items)
        try:
            await self._backend.set_item(self._key, payload)
        except Exception as e:
            raise StorageWriteError(f"failed to write key={self._key!r}: {e}") from e
        logger.debug("Saved %d tasks to key=%s", len(items), self._key)
