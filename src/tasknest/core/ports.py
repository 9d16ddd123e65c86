# src/tasknest/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage backends and presentation layers swappable and makes testing easier.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Awaitable, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import TaskListSnapshot


RenderCallback = Callable[["TaskListSnapshot"], None]
# Invoked after every change of the task list or the editing session.


class KeyValueBackend(Protocol):
    """Async durable key-value storage (SqliteKeyValueStore, test fakes)."""

    def get_item(self, key: str) -> Awaitable[str | None]: ...
    def set_item(self, key: str, value: str) -> Awaitable[None]: ...


class RemovalHandle(Protocol):
    """
    Presentation-side handle for one task id (e.g. a fade-out animation).

    The presentation creates it and registers it with the TaskStore.
    The TaskStore:
    - calls start_exit(on_done) when removal is requested,
    - expects on_done() to be called once the exit step is finished,
    - calls dispose() when the removal is committed.
    """

    def start_exit(self, on_done: Callable[[], None]) -> None: ...
    def dispose(self) -> None: ...
