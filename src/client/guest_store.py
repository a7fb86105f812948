"""
Local JSON persistence for guest boards and cached board state.

``GuestStore`` plays the part of browser localStorage: one JSON file holding
the guest task list and the last saved board state. ``LocalTaskBackend``
exposes the task half of ``ApiClient`` on top of it, so the board can run
without an account.
"""

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from client.api_client import ApiError

logger = logging.getLogger(__name__)

GUEST_TASKS_KEY = "guest_tasks"
STATE_KEY = "state"
STATUS_ALIASES = {"in-progress": "progress", "in_progress": "progress"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class GuestStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.error("Failed to load %s, starting empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        tmp.replace(self.path)

    def load_tasks(self) -> list[dict]:
        tasks = self._read().get(GUEST_TASKS_KEY, [])
        if not isinstance(tasks, list):
            return []
        return [t for t in tasks if isinstance(t, dict) and t.get("id")]

    def save_tasks(self, tasks: list[dict]) -> None:
        data = self._read()
        data[GUEST_TASKS_KEY] = tasks
        self._write(data)

    def clear_tasks(self) -> None:
        data = self._read()
        data.pop(GUEST_TASKS_KEY, None)
        self._write(data)

    def load_state(self) -> dict:
        state = self._read().get(STATE_KEY) or {}
        tasks = state.get("tasks") if isinstance(state, dict) else None
        return {
            "tasks": tasks if isinstance(tasks, list) else [],
            "last_deleted": state.get("last_deleted")
            if isinstance(state, dict) else None,
        }

    def save_state(self, tasks: list[dict], last_deleted: dict | None) -> None:
        data = self._read()
        data[STATE_KEY] = {"tasks": tasks, "last_deleted": last_deleted}
        self._write(data)


class LocalTaskBackend:
    """Task operations over the guest task list, shaped like ApiClient's."""

    is_authenticated = False

    def __init__(self, store: GuestStore):
        self.store = store
        self._last_id = 0

    def _new_id(self) -> str:
        new_id = max(int(time.time() * 1000), self._last_id + 1)
        self._last_id = new_id
        return str(new_id)

    def _find(self, tasks: list[dict], task_id: str) -> int:
        for index, task in enumerate(tasks):
            if str(task.get("id")) == str(task_id):
                return index
        raise ApiError(404, "Task not found", "NOT_FOUND")

    def list_tasks(self, status: str | None = None) -> list:
        tasks = self.store.load_tasks()
        if status:
            tasks = [t for t in tasks if t.get("status") == status]
        return tasks

    def create_task(self, task: dict) -> dict:
        tasks = self.store.load_tasks()
        status = STATUS_ALIASES.get(task.get("status"), task.get("status") or "todo")
        column = [t.get("position", 0) for t in tasks if t.get("status") == status]
        now = _now_iso()
        new_task = {
            "priority": "medium",
            "pinned": False,
            "description": None,
            "due_date": None,
            "subtasks": [],
            **task,
            "id": self._new_id(),
            "status": status,
            "created_at": task.get("created_at") or now,
            "updated_at": now,
        }
        if new_task.get("position") is None:
            new_task["position"] = max(column, default=0) + 1
        tasks.append(new_task)
        self.store.save_tasks(tasks)
        return new_task

    def update_task(self, task_id: str, updates: dict) -> dict:
        tasks = self.store.load_tasks()
        index = self._find(tasks, task_id)
        tasks[index] = {**tasks[index], **updates, "updated_at": _now_iso()}
        self.store.save_tasks(tasks)
        return tasks[index]

    def delete_task(self, task_id: str) -> dict:
        tasks = self.store.load_tasks()
        index = self._find(tasks, task_id)
        del tasks[index]
        self.store.save_tasks(tasks)
        return {"message": "Task deleted successfully"}

    def duplicate_task(self, task_id: str) -> dict:
        tasks = self.store.load_tasks()
        source = tasks[self._find(tasks, task_id)]
        title = source.get("title", "")
        if " (Copy)" not in title:
            title = f"{title} (Copy)"
        copy = {k: v for k, v in source.items()
                if k not in ("id", "position", "created_at", "updated_at")}
        copy.update({"title": title, "pinned": False})
        return self.create_task(copy)

    def reorder_tasks(self, items: list[dict]) -> dict:
        tasks = self.store.load_tasks()
        by_id = {str(t["id"]): t for t in tasks}
        updated = 0
        for index, item in enumerate(items):
            task = by_id.get(str(item["id"]))
            if task is None:
                continue
            task["position"] = index
            if item.get("status"):
                task["status"] = item["status"]
            updated += 1
        self.store.save_tasks(tasks)
        return {"success": True, "updated": updated}
