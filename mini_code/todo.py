"""
TodoManager - structured state the model writes to.

    +-----------------------+
    | [x] task A            |
    | [>] task B <- doing B |
    | [ ] task C            |
    |                       |
    | (1/3 completed)       |
    +-----------------------+

Constraints keep the model focused: at most 20 items, at most one
in_progress. Updates replace the whole list or nothing.
"""

import threading
from dataclasses import dataclass
from enum import Enum

from .errors import TodoValidationError

MAX_TODOS = 20


class TodoStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class TodoItem:
    content: str
    status: TodoStatus
    active_form: str

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "TodoItem":
        if not isinstance(data, dict):
            raise TodoValidationError(f"Item {index}: expected an object")
        status = str(data.get("status", "pending")).lower()
        try:
            status = TodoStatus(status)
        except ValueError:
            raise TodoValidationError(f"Item {index}: invalid status '{status}'") from None
        content = data.get("content", "")
        active_form = data.get("activeForm", "")
        if not isinstance(content, str):
            raise TodoValidationError(f"Item {index}: content required")
        if not isinstance(active_form, str):
            raise TodoValidationError(f"Item {index}: activeForm required")
        return cls(content=content, status=status, active_form=active_form)

    def to_dict(self) -> dict:
        return {"content": self.content, "status": self.status.value, "activeForm": self.active_form}


class TodoManager:
    """Single ordered task list with validate-then-replace updates."""

    def __init__(self):
        self._items = []
        self._lock = threading.Lock()

    @property
    def items(self) -> list:
        with self._lock:
            return list(self._items)

    def update(self, items: list) -> str:
        if not isinstance(items, list):
            raise TodoValidationError("items must be a list")
        parsed = [
            item if isinstance(item, TodoItem) else TodoItem.from_dict(item, i)
            for i, item in enumerate(items)
        ]

        in_progress = 0
        for i, item in enumerate(parsed):
            if not item.content.strip():
                raise TodoValidationError(f"Item {i}: content required")
            if not item.active_form.strip():
                raise TodoValidationError(f"Item {i}: activeForm required")
            if item.status is TodoStatus.IN_PROGRESS:
                in_progress += 1
        if in_progress > 1:
            raise TodoValidationError("Only one task can be in_progress at a time")
        if len(parsed) > MAX_TODOS:
            raise TodoValidationError(f"Max {MAX_TODOS} todos allowed")

        with self._lock:
            self._items = parsed
            return _render(parsed)

    def render(self) -> str:
        return _render(self.items)


def _render(items: list) -> str:
    if not items:
        return "No todos."
    lines = []
    for item in items:
        if item.status is TodoStatus.COMPLETED:
            lines.append(f"[x] {item.content}")
        elif item.status is TodoStatus.IN_PROGRESS:
            lines.append(f"[>] {item.content} <- {item.active_form}")
        else:
            lines.append(f"[ ] {item.content}")
    done = sum(1 for t in items if t.status is TodoStatus.COMPLETED)
    lines.append(f"\n({done}/{len(items)} completed)")
    return "\n".join(lines)
