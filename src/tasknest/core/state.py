# src/tasknest/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Settings object (config.Settings or a test stand-in).
    settings: object

    task_store: TaskStore

    # Console rows: 1-based position -> task id, as of the last render.
    row_ids: list[str] = field(default_factory=list)
