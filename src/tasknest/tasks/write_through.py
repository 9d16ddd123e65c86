# src/tasknest/tasks/write_through.py

from __future__ import annotations

"""
Write-through persistence for the task list.

A single-flight writer:
- every mutation calls schedule(), which bumps a monotonic version,
- at most one save() is in flight; it reads the *current* list when it starts,
- mutations that arrive while a save is in flight are coalesced into one follow-up
  save of the newest state.

Since saves never overlap, an older snapshot can never land after a newer one,
so durable state does not regress.

Failed saves are logged and not retried; the next mutation re-attempts a full save.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence

from ..errors import StorageWriteError
from ..storage.persistent_store import PersistentStore
from .task_models import Task

logger = logging.getLogger(__name__)


class WriteThrough:
    def __init__(self, store: PersistentStore, snapshot: Callable[[], Sequence[Task]]) -> None:
        self._store = store
        self._snapshot = snapshot
        self._requested = 0
        self._written = 0
        self._failures = 0
        self._runner: asyncio.Task[None] | None = None

    @property
    def requested_version(self) -> int:
        return self._requested

    @property
    def written_version(self) -> int:
        """Last version a save was attempted for (successful or not)."""
        return self._written

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def pending(self) -> bool:
        return self._written < self._requested

    def schedule(self) -> int:
        """
        Request a save of the current list. Never blocks.

        Without a running event loop the request is only recorded;
        flush() persists it later.
        """
        self._requested += 1
        version = self._requested

        try:
            self._ensure_runner()
        except RuntimeError:
            logger.debug("No running loop; save v%s deferred until flush()", version)
        return version

    async def flush(self) -> None:
        """Wait until every scheduled version has been written (or attempted)."""
        while self.pending:
            await asyncio.shield(self._ensure_runner())

    def _ensure_runner(self) -> asyncio.Task[None]:
        # A running drain loop picks up newer versions by itself.
        if self._runner is None or self._runner.done():
            loop = asyncio.get_running_loop()
            self._runner = loop.create_task(self._drain(), name="tasknest-write-through")
        return self._runner

    async def _drain(self) -> None:
        while self._written < self._requested:
            version = self._requested
            tasks = list(self._snapshot())
            try:
                await self._store.save(tasks)
                logger.debug("Saved v%s (%d tasks)", version, len(tasks))
            except StorageWriteError:
                self._failures += 1
                logger.exception(
                    "Save v%s failed; in-memory list stays authoritative until the next save",
                    version,
                )
            except Exception:
                self._failures += 1
                logger.exception("Save v%s crashed unexpectedly", version)
            self._written = version
