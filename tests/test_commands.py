# tests/test_commands.py

from __future__ import annotations

from tasknest.cli.commands import CommandRegistry
from tasknest.connectors.console_connector import handle_line


def _refresh_rows(state) -> None:
    state.row_ids = [t.id for t in state.task_store.tasks]


def test_command_registry_routes_and_aliases(state) -> None:
    reg = CommandRegistry()
    called = {"a": 0}

    def h(state, args):
        called["a"] += 1
        return f"a:{','.join(args)}"

    reg.register("alpha", h, "alpha", aliases=["a"])

    assert reg.handle(state, "/alpha x y") == "a:x,y"
    assert reg.handle(state, "/A z") == "a:z"
    assert called["a"] == 2
    assert "/alpha - alpha" in reg.build_help()


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_plain_lines_add_tasks(state) -> None:
    assert handle_line(state, "  Buy milk ") == "+ Added: Buy milk"
    assert handle_line(state, "   ") is None
    assert [t.text for t in state.task_store.tasks] == ["Buy milk"]


def test_done_edit_and_delete_by_row_number(state) -> None:
    handle_line(state, "first")
    handle_line(state, "second")
    _refresh_rows(state)

    assert handle_line(state, "/done 2") == "Completed: second"
    assert state.task_store.tasks[1].completed is True
    assert handle_line(state, "/done 2") == "Reopened: second"

    reply = handle_line(state, "/edit 1") or ""
    assert reply.startswith("Editing #1: first")
    assert handle_line(state, "first, edited ") == "Saved."
    assert state.task_store.tasks[0].text == "first, edited "
    assert not state.task_store.editing.active

    assert handle_line(state, "/del 1") == "Deleted: first, edited "
    assert [t.text for t in state.task_store.tasks] == ["second"]


def test_bad_row_numbers_are_reported(state) -> None:
    handle_line(state, "only")
    _refresh_rows(state)

    assert "No task #7" in (handle_line(state, "/done 7") or "")
    assert "No task #x" in (handle_line(state, "/del x") or "")
    assert "Missing task number" in (handle_line(state, "/edit") or "")
    assert len(state.task_store.tasks) == 1


def test_cancel_and_status(state) -> None:
    handle_line(state, "a")
    _refresh_rows(state)

    assert handle_line(state, "/cancel") == "Nothing is being edited."
    handle_line(state, "/edit 1")
    status = handle_line(state, "/status") or ""
    assert "Tasks: 1 (0 done)" in status
    assert "editing #1" in status
    assert handle_line(state, "/cancel") == "Edit cancelled."


def test_empty_line_while_editing_saves_empty_text(state) -> None:
    handle_line(state, "to be blanked")
    _refresh_rows(state)
    handle_line(state, "/edit 1")

    assert handle_line(state, "") == "Saved."
    assert state.task_store.tasks[0].text == ""
