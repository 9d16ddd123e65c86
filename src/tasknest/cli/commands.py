# src/tasknest/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /done, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Any other line adds a task (or saves the edit in progress).")
        return "\n".join(lines)


registry = CommandRegistry()


def _resolve_row(state: AppState, args: list[str]) -> str | None:
    """Map a 1-based row number from the last listing to a task id."""
    if not args:
        return None
    try:
        n = int(args[0])
    except ValueError:
        return None
    if n < 1 or n > len(state.row_ids):
        return None
    return state.row_ids[n - 1]


def _no_such_row(args: list[str]) -> str:
    if not args:
        return "Missing task number. Use /list to see numbers."
    return f"No task #{args[0]}. Use /list to see numbers."


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    # Imported here: the console module imports this registry.
    from ..connectors.console_connector import render_snapshot

    return render_snapshot(state.task_store.snapshot())


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _resolve_row(state, args)
    if task_id is None:
        return _no_such_row(args)
    store = state.task_store
    if not store.toggle_completion(task_id):
        return _no_such_row(args)
    task = store.get(task_id)
    return f"{'Completed' if task.completed else 'Reopened'}: {task.text}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    task_id = _resolve_row(state, args)
    if task_id is None or not state.task_store.start_editing(task_id):
        return _no_such_row(args)
    return (
        f"Editing #{args[0]}: {state.task_store.input_text}\n"
        "Type the new text (an empty line keeps it empty), or /cancel."
    )


def cmd_cancel(state: AppState, args: list[str]) -> str:
    if state.task_store.cancel_editing():
        return "Edit cancelled."
    return "Nothing is being edited."


def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id = _resolve_row(state, args)
    if task_id is None:
        return _no_such_row(args)
    store = state.task_store
    text = store.get(task_id).text
    ticket = store.request_delete(task_id)
    if ticket is None:
        return _no_such_row(args)
    return f"Deleted: {text}" if ticket.done else f"Deleting: {text}"


def cmd_status(state: AppState, args: list[str]) -> str:
    store = state.task_store
    snap = store.snapshot()
    done = sum(1 for t in snap.tasks if t.completed)
    writer = store.writer
    mode = f"editing #{_row_of(state, snap.editing.target_id)}" if snap.editing.active else "composing"
    db_path = getattr(state.settings, "store_db_path", "?")
    return (
        "Status:\n"
        f"  Tasks: {len(snap.tasks)} ({done} done)\n"
        f"  Input: {mode}\n"
        f"  Saves: v{writer.written_version}/v{writer.requested_version}, failed={writer.failures}\n"
        f"  Store: {db_path}"
    )


def _row_of(state: AppState, task_id: str | None) -> str:
    try:
        return str(state.row_ids.index(task_id) + 1) if task_id else "?"
    except ValueError:
        return "?"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the task list.", aliases=["ls"])
registry.register("done", cmd_done, help_text="Toggle completion: /done N.", aliases=["toggle"])
registry.register("edit", cmd_edit, help_text="Edit a task's text: /edit N.")
registry.register("cancel", cmd_cancel, help_text="Abandon the edit in progress.")
registry.register("del", cmd_delete, help_text="Delete a task: /del N.", aliases=["rm"])
registry.register("status", cmd_status, help_text="Show counts and persistence status.")
