"""
Todo service backing the web app.

Mirrors the Apps Script backend in ``example/src/backend/main.js``: the
whole list lives as one JSON string under a single user property and is
read and rewritten on every mutation.
"""

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol


class TodoError(Exception):
    """Invalid todo request."""


class TodoNotFoundError(TodoError):
    """No todo with the requested id."""


class PropertyStore(Protocol):
    def get_property(self, key: str) -> Optional[str]: ...

    def set_property(self, key: str, value: str) -> None: ...


class MemoryPropertyStore:
    """In-process stand-in for ``PropertiesService.getUserProperties()``."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._properties: Dict[str, str] = dict(initial or {})

    def get_property(self, key: str) -> Optional[str]:
        return self._properties.get(key)

    def set_property(self, key: str, value: str) -> None:
        self._properties[key] = value


def _now_iso() -> str:
    # Same shape as JavaScript's Date.toISOString(): 2024-05-01T12:00:00.000Z
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Todo:
    id: str
    text: str
    completed: bool = False
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Todo":
        return cls(
            id=data["id"],
            text=data.get("text", ""),
            completed=bool(data.get("completed", False)),
            created_at=data.get("createdAt", ""),
        )


class TodoService:
    def __init__(self, store: PropertyStore, key: str = "todos"):
        self.store = store
        self.key = key

    def get_todos(self) -> List[Todo]:
        raw = self.store.get_property(self.key)
        if not raw:
            return []
        return [Todo.from_dict(item) for item in json.loads(raw)]

    def save_todos(self, todos: List[Todo]) -> None:
        self.store.set_property(self.key, json.dumps([t.to_dict() for t in todos]))

    def add_todo(self, text: str) -> Todo:
        if not text:
            raise TodoError("Todo text is required.")
        todos = self.get_todos()
        todo = Todo(id=str(uuid.uuid4()), text=text, completed=False, created_at=_now_iso())
        todos.append(todo)
        self.save_todos(todos)
        return todo

    def toggle_todo(self, todo_id: str) -> Todo:
        todos = self.get_todos()
        for todo in todos:
            if todo.id == todo_id:
                todo.completed = not todo.completed
                self.save_todos(todos)
                return todo
        raise TodoNotFoundError("Todo not found.")

    def delete_todo(self, todo_id: str) -> Dict[str, str]:
        todos = self.get_todos()
        remaining = [t for t in todos if t.id != todo_id]
        if len(remaining) == len(todos):
            raise TodoNotFoundError("Todo not found to delete.")
        self.save_todos(remaining)
        return {"status": "success", "deleted": todo_id}
