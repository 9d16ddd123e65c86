# src/tasknest/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any


def new_task_id() -> str:
    """Mint an opaque id. Random, so ids are never reused across restarts."""
    return uuid.uuid4().hex


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    text: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


@dataclass(slots=True, frozen=True)
class EditingSession:
    """
    State of the shared compose/edit input.

    active=False -> the input composes a new task
    active=True  -> the input holds an in-progress edit of target_id
    """

    active: bool = False
    target_id: str | None = None

    @classmethod
    def composing(cls) -> EditingSession:
        return cls()

    @classmethod
    def editing(cls, target_id: str) -> EditingSession:
        return cls(active=True, target_id=target_id)


@dataclass(slots=True, frozen=True)
class TaskListSnapshot:
    """Immutable view handed to render callbacks."""

    tasks: tuple[Task, ...] = ()
    editing: EditingSession = field(default_factory=EditingSession.composing)
    input_text: str = ""
    pending_removal: frozenset[str] = frozenset()
