# src/tasknest/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_models import TaskListSnapshot

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def render_snapshot(snap: TaskListSnapshot) -> str:
    if not snap.tasks:
        return "No tasks yet. Type something to add one."

    lines = []
    for i, t in enumerate(snap.tasks, start=1):
        mark = "x" if t.completed else " "
        suffix = ""
        if t.id in snap.pending_removal:
            suffix = "  (removing...)"
        elif snap.editing.active and snap.editing.target_id == t.id:
            suffix = "  (editing)"
        lines.append(f"{i:>3}. [{mark}] {t.text}{suffix}")
    return "\n".join(lines)


class ConsoleFadeHandle:
    """
    Console stand-in for an exit animation: removal commits after delay_s.

    dispose() cancels a timer that has not fired yet.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, delay_s: float) -> None:
        self._loop = loop
        self._delay_s = delay_s
        self._timer: asyncio.TimerHandle | None = None

    def start_exit(self, on_done: Callable[[], None]) -> None:
        self._timer = self._loop.call_later(self._delay_s, on_done)

    def dispose(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class ConsoleView:
    """
    Render-callback side of the console.

    - keeps state.row_ids in sync with the visible numbering
    - creates a ConsoleFadeHandle for every task id it has not seen yet
    """

    def __init__(self, state: AppState, loop: asyncio.AbstractEventLoop, exit_delay_s: float) -> None:
        self._state = state
        self._loop = loop
        self._exit_delay_s = exit_delay_s
        self._known: set[str] = set()

    def on_snapshot(self, snap: TaskListSnapshot) -> None:
        self._state.row_ids = [t.id for t in snap.tasks]

        current = set(self._state.row_ids)
        if self._exit_delay_s > 0:
            for task_id in current - self._known:
                handle = ConsoleFadeHandle(self._loop, self._exit_delay_s)
                self._state.task_store.register_removal_handle(task_id, handle)
        self._known = current


def _read_line(prompt: str) -> asyncio.Future[str]:
    """
    Read one line from stdin in a daemon thread.

    A daemon thread (not the default executor) so a pending input() never blocks shutdown.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[str] = loop.create_future()

    def _deliver(result: str | None, exc: Exception | None) -> None:
        if fut.done():
            return
        if exc is not None:
            fut.set_exception(exc)
        else:
            fut.set_result(result or "")

    def _worker() -> None:
        try:
            line = input(prompt)
        except Exception as e:  # EOFError, OSError
            loop.call_soon_threadsafe(_deliver, None, e)
            return
        loop.call_soon_threadsafe(_deliver, line, None)

    threading.Thread(target=_worker, name="tasknest-stdin", daemon=True).start()
    return fut


READ_ONLY_COMMANDS = frozenset({"list", "ls", "help", "h", "?", "status"})


def _is_read_only(line: str) -> bool:
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False
    parts = stripped[1:].split()
    return bool(parts) and parts[0].lower() in READ_ONLY_COMMANDS


def handle_line(state: AppState, line: str) -> str | None:
    """
    Route one console line.

    Slash commands go to the registry; anything else is the input buffer:
    saved as the edit in progress, or added as a new task.
    """
    stripped = line.strip()
    if stripped.startswith("/"):
        return command_registry.handle(state, stripped)

    store = state.task_store
    if not store.editing.active and not stripped:
        return None

    # Edits keep the raw line (no trim, may be empty).
    store.set_input(line if store.editing.active else stripped)
    was_editing = store.editing.active
    new_id = store.submit()

    if was_editing:
        return "Saved."
    if new_id is not None:
        return f"+ Added: {store.get(new_id).text}"
    return None


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    app_name = str(getattr(state.settings, "app_name", "tasknest"))
    exit_delay_ms = int(getattr(state.settings, "exit_delay_ms", 0) or 0)

    view = ConsoleView(state, asyncio.get_running_loop(), exit_delay_ms / 1000.0)
    unsubscribe = state.task_store.subscribe(view.on_snapshot)
    view.on_snapshot(state.task_store.snapshot())

    _print_ts(f"[{app_name}] Type a task to add it. Use /help for commands. Use /exit to quit.\n")
    print(render_snapshot(state.task_store.snapshot()))

    try:
        while True:
            prompt = "edit> " if state.task_store.editing.active else "> "
            try:
                line = await _read_line(prompt)
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break

            if line.strip().lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                reply = handle_line(state, line)
            except Exception:
                logger.exception("Console handler crashed.")
                reply = "Internal error while handling input."

            if reply is not None:
                _print_ts(reply)

            # Let deferred removals and the writer make progress before redrawing.
            await asyncio.sleep(0)
            if not _is_read_only(line):
                print(render_snapshot(state.task_store.snapshot()))
    finally:
        unsubscribe()
        logger.info("Console connector finished.")
