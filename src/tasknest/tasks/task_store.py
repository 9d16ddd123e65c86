# src/tasknest/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from ..core.ports import RemovalHandle, RenderCallback
from ..errors import InvalidReference, StorageReadError
from ..storage.persistent_store import PersistentStore
from .task_models import EditingSession, Task, TaskListSnapshot, new_task_id
from .write_through import WriteThrough

logger = logging.getLogger(__name__)


class RemovalTicket:
    """Completion signal for a requested delete. Done once the task is gone."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        self._done = False
        self._event: asyncio.Event | None = None

    @property
    def done(self) -> bool:
        return self._done

    def _complete(self) -> None:
        self._done = True
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        if self._done:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()


class TaskStore:
    """
    Owner of the task list and the compose/edit input.

    The only component allowed to mutate either. Every intent is a synchronous
    state transition; list mutations schedule an asynchronous write-through to
    the PersistentStore, and every change is pushed to subscribed render callbacks.

    Deletes are two-phase when the presentation registered a RemovalHandle for the id:
    request_delete() starts the handle's exit step, commit_delete() removes the task.
    Without a handle the task is removed right away.
    """

    def __init__(
        self,
        store: PersistentStore,
        *,
        id_factory: Callable[[], str] = new_task_id,
    ) -> None:
        self._persistent = store
        self._id_factory = id_factory

        self._tasks: list[Task] = []
        self._editing = EditingSession.composing()
        self._input = ""

        self._issued: set[str] = set()
        self._handles: dict[str, RemovalHandle] = {}
        self._pending: dict[str, RemovalTicket] = {}
        self._observers: list[RenderCallback] = []

        self._writer = WriteThrough(store, lambda: self._tasks)

    # ---- lifecycle ----

    async def initialize(self) -> bool:
        """
        Load the persisted list into memory.

        Returns False when the stored data could not be read; the list then starts empty.
        """
        try:
            loaded = await self._persistent.load()
            ok = True
        except StorageReadError:
            logger.exception("Failed to load tasks; starting with an empty list")
            loaded = []
            ok = False

        seen: set[str] = set()
        unique: list[Task] = []
        for t in loaded:
            if t.id in seen:
                logger.warning("Dropping duplicate stored task id=%s", t.id)
                continue
            seen.add(t.id)
            unique.append(t)

        self._tasks = unique
        logger.info("TaskStore ready tasks=%d key=%s", len(unique), self._persistent.key)
        self._notify()
        return ok

    async def flush(self) -> None:
        """Wait for all scheduled saves."""
        await self._writer.flush()

    async def aclose(self) -> None:
        """Commit deletes still waiting on their exit step, then flush saves."""
        for task_id in list(self._pending):
            logger.debug("Committing pending delete of task %s on close", task_id)
            self.commit_delete(task_id)
        await self.flush()
        if self._writer.failures:
            logger.warning("TaskStore closed after %d failed save(s)", self._writer.failures)

    # ---- read side ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def editing(self) -> EditingSession:
        return self._editing

    @property
    def input_text(self) -> str:
        return self._input

    @property
    def writer(self) -> WriteThrough:
        return self._writer

    def snapshot(self) -> TaskListSnapshot:
        return TaskListSnapshot(
            tasks=tuple(self._tasks),
            editing=self._editing,
            input_text=self._input,
            pending_removal=frozenset(self._pending),
        )

    def get(self, task_id: str) -> Task:
        """Return the task with task_id or raise InvalidReference."""
        return self._tasks[self._index_of(task_id)]

    def subscribe(self, callback: RenderCallback) -> Callable[[], None]:
        """Register a render callback; returns an unsubscribe function."""
        self._observers.append(callback)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._observers.remove(callback)

        return _unsubscribe

    # ---- intents ----

    def set_input(self, text: str) -> None:
        """Mirror the shared compose/edit input (not persisted)."""
        self._input = text
        self._notify()

    def submit(self) -> str | None:
        """
        Commit the input buffer: save the edit when editing, add a task otherwise.

        Returns the new task id when a task was added.
        """
        if self._editing.active:
            self.save_edit(self._input)
            return None
        return self.add_task(self._input)

    def add_task(self, raw_text: str) -> str | None:
        """
        Append a new task with the trimmed text.

        Blank text is ignored (returns None). Otherwise returns the new id, which the
        presentation may use to key its add animation / removal handle.
        Adding while an edit is open ends that edit.
        """
        text = (raw_text or "").strip()
        if not text:
            logger.debug("add_task ignored: blank text")
            return None

        task_id = self._mint_id()
        self._tasks.append(Task(id=task_id, text=text))
        self._input = ""
        if self._editing.active:
            logger.info("Edit of task %s dropped: input was added as a new task", self._editing.target_id)
            self._editing = EditingSession.composing()

        logger.debug("Task added id=%s", task_id)
        self._changed()
        return task_id

    def toggle_completion(self, task_id: str) -> bool:
        try:
            idx = self._index_of(task_id)
        except InvalidReference as e:
            logger.debug("toggle_completion ignored: %s", e)
            return False

        t = self._tasks[idx]
        self._tasks[idx] = Task(id=t.id, text=t.text, completed=not t.completed)
        logger.debug("Task %s completed=%s", task_id, not t.completed)
        self._changed()
        return True

    def start_editing(self, task_id: str) -> bool:
        try:
            task = self.get(task_id)
        except InvalidReference as e:
            logger.debug("start_editing ignored: %s", e)
            return False

        self._editing = EditingSession.editing(task_id)
        self._input = task.text
        self._notify()
        return True

    def cancel_editing(self) -> bool:
        if not self._editing.active:
            return False
        self._editing = EditingSession.composing()
        self._input = ""
        self._notify()
        return True

    def save_edit(self, new_text: str) -> bool:
        """
        Replace the edited task's text verbatim (no trim, empty allowed).

        No-op when not editing, or when the edit target is no longer in the list.
        """
        if not self._editing.active or self._editing.target_id is None:
            logger.debug("save_edit ignored: not editing")
            return False

        target_id = self._editing.target_id
        try:
            idx = self._index_of(target_id)
        except InvalidReference as e:
            logger.warning("save_edit ignored: stale edit target (%s)", e)
            return False

        t = self._tasks[idx]
        self._tasks[idx] = Task(id=t.id, text=new_text, completed=t.completed)
        self._editing = EditingSession.composing()
        self._input = ""
        logger.debug("Task %s text updated", target_id)
        self._changed()
        return True

    def register_removal_handle(self, task_id: str, handle: RemovalHandle) -> bool:
        """Attach the presentation's exit handle for task_id (replaces an older one)."""
        try:
            self._index_of(task_id)
        except InvalidReference as e:
            logger.debug("register_removal_handle ignored: %s", e)
            return False

        old = self._handles.get(task_id)
        if old is not None and old is not handle:
            self._dispose(task_id, old)
        self._handles[task_id] = handle
        return True

    def delete_task(self, task_id: str) -> RemovalTicket | None:
        return self.request_delete(task_id)

    def request_delete(self, task_id: str) -> RemovalTicket | None:
        """
        Start removing task_id.

        - unknown id -> None (no-op)
        - removal already pending -> the same ticket
        - handle registered -> exit step started, removal waits for commit_delete()
        - no handle -> removed immediately, ticket already done
        """
        try:
            self._index_of(task_id)
        except InvalidReference as e:
            logger.warning("delete ignored: %s", e)
            return None

        existing = self._pending.get(task_id)
        if existing is not None:
            return existing

        ticket = RemovalTicket(task_id)
        handle = self._handles.get(task_id)
        if handle is None:
            logger.debug("No removal handle for task %s; removing immediately", task_id)
            self._pending[task_id] = ticket
            self.commit_delete(task_id)
            return ticket

        self._pending[task_id] = ticket
        self._notify()

        try:
            handle.start_exit(lambda: self.commit_delete(task_id))
        except Exception:
            # A task must never become undeletable.
            logger.exception("Removal handle failed for task %s; removing immediately", task_id)
            self.commit_delete(task_id)

        return ticket

    def commit_delete(self, task_id: str) -> bool:
        """Remove task_id now, dispose its handle and complete its ticket."""
        ticket = self._pending.pop(task_id, None)
        handle = self._handles.pop(task_id, None)
        if handle is not None:
            self._dispose(task_id, handle)

        try:
            idx = self._index_of(task_id)
        except InvalidReference as e:
            logger.debug("commit_delete: %s", e)
            if ticket is not None:
                ticket._complete()
            return False

        del self._tasks[idx]
        if self._editing.target_id == task_id:
            self._editing = EditingSession.composing()
            self._input = ""

        logger.debug("Task removed id=%s", task_id)
        self._changed()
        if ticket is not None:
            ticket._complete()
        return True

    # ---- internals ----

    def _index_of(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        raise InvalidReference(task_id)

    def _mint_id(self) -> str:
        taken = self._issued | {t.id for t in self._tasks}
        while True:
            candidate = self._id_factory()
            if candidate not in taken:
                self._issued.add(candidate)
                return candidate
            logger.warning("id factory returned a duplicate id=%s; retrying", candidate)

    @staticmethod
    def _dispose(task_id: str, handle: RemovalHandle) -> None:
        try:
            handle.dispose()
        except Exception:
            logger.exception("Removal handle dispose failed for task %s", task_id)

    def _changed(self) -> None:
        self._notify()
        self._writer.schedule()

    def _notify(self) -> None:
        if not self._observers:
            return
        snap = self.snapshot()
        for cb in list(self._observers):
            try:
                cb(snap)
            except Exception:
                logger.exception("Render callback failed")
