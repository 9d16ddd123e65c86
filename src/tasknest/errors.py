# src/tasknest/errors.py

"""Exception taxonomy shared by the storage layer and the task store."""

from __future__ import annotations


class TaskNestError(Exception):
    """Base class for all tasknest errors."""


class StorageError(TaskNestError):
    """Durable storage failed."""


class StorageReadError(StorageError):
    """Persisted blob is missing structure, undecodable, or the read itself failed."""


class StorageWriteError(StorageError):
    """Writing the snapshot to durable storage failed."""


class InvalidReference(TaskNestError):
    """An intent referenced a task id that is not in the list."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"no task with id={task_id!r}")
        self.task_id = task_id
