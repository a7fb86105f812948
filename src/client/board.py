"""
Board state with optimistic updates.

Every mutation is applied to ``Board.tasks`` first, then sent to the
backend: the REST API when logged in, the local guest store otherwise.
Server responses replace the optimistic copy; failures roll it back and
report through ``notify(message, level)``.
"""

import copy
import logging
import time
from datetime import datetime, timezone

from client.api_client import ApiClient, ApiError
from client.guest_store import GuestStore, LocalTaskBackend, STATUS_ALIASES

logger = logging.getLogger(__name__)

COLUMNS = ("todo", "progress", "done")
EXPORT_VERSION = "1.0"
TEMP_PREFIX = "temp-"
SORT_ORDERS = ("none", "asc", "desc")


def _millis() -> int:
    return int(time.time() * 1000)


def _column_of(task: dict) -> str:
    status = task.get("status") or "todo"
    status = STATUS_ALIASES.get(status, status)
    return status if status in COLUMNS else "todo"


def _due_of(task: dict) -> datetime | None:
    """Due date as naive UTC, from an ISO string or epoch milliseconds."""
    value = task.get("due_date") or task.get("dueDate")
    if not value:
        return None
    try:
        if isinstance(value, (int, float)):
            due = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        else:
            due = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        logger.debug("Unreadable due date %r on task %s", value, task.get("id"))
        return None
    if due.tzinfo is not None:
        due = due.astimezone(timezone.utc).replace(tzinfo=None)
    return due


def _silent(message: str, level: str = "info") -> None:
    pass


class Board:
    def __init__(self, api: ApiClient, store: GuestStore, notify=None):
        self.api = api
        self.store = store
        self.local = LocalTaskBackend(store)
        self.notify = notify or _silent
        saved = store.load_state()
        self.tasks: list[dict] = saved["tasks"]
        self.last_deleted: dict | None = saved["last_deleted"]
        self.priority_filter = "all"
        self.sort_order = "none"

    @property
    def guest_mode(self) -> bool:
        return not self.api.is_authenticated

    @property
    def backend(self):
        return self.local if self.guest_mode else self.api

    # -- state helpers -----------------------------------------------------

    def _save_state(self) -> None:
        try:
            self.store.save_state(self.tasks, self.last_deleted)
        except OSError as e:
            logger.error("Failed to save state: %s", e)
            self.notify("Failed to save board state", "error")

    def _index(self, task_id) -> int:
        for index, task in enumerate(self.tasks):
            if str(task.get("id")) == str(task_id):
                return index
        return -1

    def find(self, task_id) -> dict | None:
        index = self._index(task_id)
        return self.tasks[index] if index != -1 else None

    def _replace(self, task_id, task: dict) -> None:
        index = self._index(task_id)
        if index == -1:
            self.tasks.insert(0, task)
        else:
            self.tasks[index] = task

    def _remove(self, task_id) -> None:
        index = self._index(task_id)
        if index != -1:
            del self.tasks[index]

    def _not_found(self, task_id) -> None:
        logger.error("Task not found: %s", task_id)
        self.notify("Task not found", "error")

    # -- reading -----------------------------------------------------------

    def load(self) -> list[dict]:
        """Fetch the board from the server, or from the guest store."""
        if self.guest_mode:
            self.tasks = self.local.list_tasks()
        else:
            try:
                self.tasks = list(self.api.list_tasks())
            except ApiError as e:
                logger.error("Error loading tasks: %r", e)
                if e.status == 401:
                    self.api.token = None
                    self.notify("Session expired. Please log in again.", "error")
                    self.tasks = self.local.list_tasks()
                elif e.code == "NETWORK_ERROR":
                    self.notify("Network error. Please check your connection.",
                                "error")
                    self.tasks = []
                else:
                    self.notify("Failed to load tasks", "error")
                    self.tasks = []
        self._save_state()
        return self.tasks

    def _grouped(self) -> dict[str, list[dict]]:
        columns = {name: [] for name in COLUMNS}
        for task in self.tasks:
            columns[_column_of(task)].append(task)
        for tasks in columns.values():
            tasks.sort(key=lambda t: (not t.get("pinned"), t.get("position") or 0))
        return columns

    def columns(self, priority: str | None = None,
                sort: str | None = None) -> dict[str, list[dict]]:
        """
        Tasks grouped by column: pinned first, then by position.

        ``priority`` keeps one priority ("all" keeps every task) and ``sort``
        orders each column by due date ("asc", "desc" or "none"). Both
        default to ``priority_filter`` and ``sort_order``. Undated tasks go
        last when ascending and first when descending.
        """
        priority = (priority or self.priority_filter).lower()
        sort = sort or self.sort_order
        if sort not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {sort}")
        columns = self._grouped()
        for name, tasks in columns.items():
            if priority != "all":
                tasks = [t for t in tasks
                         if (t.get("priority") or "").lower() == priority]
            if sort != "none":
                dated = [t for t in tasks if _due_of(t) is not None]
                undated = [t for t in tasks if _due_of(t) is None]
                dated.sort(key=_due_of, reverse=sort == "desc")
                tasks = dated + undated if sort == "asc" else undated + dated
            columns[name] = tasks
        return columns

    def toggle_sort_order(self) -> str:
        """Cycle the due-date sort: none, asc, desc, none."""
        index = SORT_ORDERS.index(self.sort_order)
        self.sort_order = SORT_ORDERS[(index + 1) % len(SORT_ORDERS)]
        return self.sort_order

    def is_overdue(self, task: dict, now: datetime | None = None) -> bool:
        """A task is overdue when its due date has passed and it is not done."""
        due = _due_of(task)
        if due is None or _column_of(task) == "done":
            return False
        now = now or datetime.now(timezone.utc).replace(tzinfo=None)
        return due < now

    def search(self, text: str) -> list[dict]:
        needle = (text or "").strip().lower()
        if not needle:
            return list(self.tasks)
        return [
            t for t in self.tasks
            if needle in (t.get("title") or "").lower()
            or needle in (t.get("description") or "").lower()
        ]

    def export(self) -> dict:
        return {
            "version": EXPORT_VERSION,
            "tasks": copy.deepcopy(self.tasks),
            "exported_at": datetime.now(timezone.utc).isoformat(),
        }

    # -- mutations ---------------------------------------------------------

    def add_task(self, data: dict) -> dict | None:
        temp = {
            "priority": "medium",
            "pinned": False,
            "subtasks": [],
            **data,
            "id": f"{TEMP_PREFIX}{_millis()}",
            "status": data.get("status") or "todo",
        }
        self.tasks.insert(0, temp)
        self._save_state()
        try:
            created = self.backend.create_task(data)
        except ApiError as e:
            logger.error("Error creating task: %r", e)
            self._remove(temp["id"])
            self._save_state()
            self.notify("Failed to create task", "error")
            return None
        self._replace(temp["id"], created)
        self._save_state()
        self.notify("Task created", "success")
        return created

    def update_task(self, task_id, changes: dict) -> dict | None:
        index = self._index(task_id)
        if index == -1:
            self._not_found(task_id)
            return None
        snapshot = copy.deepcopy(self.tasks[index])
        self.tasks[index] = {**snapshot, **changes}
        self._save_state()
        try:
            updated = self.backend.update_task(task_id, changes)
        except ApiError as e:
            logger.error("Error updating task %s: %r", task_id, e)
            self._replace(task_id, snapshot)
            self._save_state()
            self.notify("Failed to update task", "error")
            return None
        self._replace(task_id, updated)
        self._save_state()
        return updated

    def toggle_pin(self, task_id) -> dict | None:
        task = self.find(task_id)
        if task is None:
            self._not_found(task_id)
            return None
        pinned = not task.get("pinned")
        updated = self.update_task(task_id, {"pinned": pinned})
        if updated is not None:
            self.notify("Task pinned" if pinned else "Task unpinned", "success")
        return updated

    def move_task(self, task_id, status: str, index: int | None = None) -> bool:
        """
        Drop a card into ``status`` at ``index`` (end of column when None)
        and persist the new order of every column it touched.
        """
        task = self.find(task_id)
        if task is None:
            self._not_found(task_id)
            return False
        status = STATUS_ALIASES.get(status, status)
        if status not in COLUMNS:
            raise ValueError(f"Unknown column: {status}")
        snapshot = {id(t): (t.get("status"), t.get("position"))
                    for t in self.tasks}
        old_status = _column_of(task)

        target = [t for t in self._grouped()[status] if t is not task]
        if index is None or index > len(target):
            index = len(target)
        target.insert(max(index, 0), task)
        task["status"] = status
        moved = [(t, status) for t in target]
        if old_status != status:
            moved += [(t, old_status) for t in self._grouped()[old_status]]

        # Positions follow the reorder request: one index across both columns
        items = []
        for position, (t, column) in enumerate(moved):
            if str(t["id"]).startswith(TEMP_PREFIX):
                t["position"] = position
                continue
            t["position"] = len(items)
            items.append({"id": t["id"], "status": column})

        self._save_state()
        try:
            self.backend.reorder_tasks(items)
        except ApiError as e:
            logger.error("Error moving task %s: %r", task_id, e)
            for t in self.tasks:
                if id(t) in snapshot:
                    t["status"], t["position"] = snapshot[id(t)]
            self._save_state()
            self.notify("Failed to move task", "error")
            return False
        return True

    def duplicate_task(self, task_id) -> dict | None:
        source = self.find(task_id)
        if source is None:
            self._not_found(task_id)
            return None
        temp = copy.deepcopy(source)
        temp["id"] = f"{TEMP_PREFIX}{_millis()}"
        if " (Copy)" not in temp.get("title", ""):
            temp["title"] = f"{temp.get('title', '')} (Copy)"
        temp["pinned"] = False
        self.tasks.insert(0, temp)
        self._save_state()
        try:
            created = self.backend.duplicate_task(task_id)
        except ApiError as e:
            logger.error("Error duplicating task %s: %r", task_id, e)
            self._remove(temp["id"])
            self._save_state()
            self.notify("Failed to duplicate task", "error")
            return None
        self._replace(temp["id"], created)
        self._save_state()
        self.notify("Task duplicated", "success")
        return created

    def delete_task(self, task_id) -> bool:
        index = self._index(task_id)
        if index == -1:
            self._not_found(task_id)
            return False
        task = self.tasks.pop(index)
        self.last_deleted = {**task, "deleted_at": _millis()}
        self._save_state()
        try:
            self.backend.delete_task(task["id"])
        except ApiError as e:
            logger.error("Error deleting task %s: %r", task_id, e)
            self.tasks.insert(index, task)
            self.last_deleted = None
            self._save_state()
            self.notify("Failed to delete task", "error")
            return False
        self.notify("Task deleted", "info")
        return True

    def undo_delete(self) -> dict | None:
        """Recreate the last deleted task; the backend assigns a new id."""
        if not self.last_deleted:
            return None
        data = {k: v for k, v in self.last_deleted.items()
                if k not in ("id", "deleted_at", "updated_at")}
        try:
            restored = self.backend.create_task(data)
        except ApiError as e:
            logger.error("Error undoing delete: %r", e)
            self.notify("Failed to restore task", "error")
            return None
        else:
            self.tasks.insert(0, restored)
            self.notify("Task restored", "success")
            return restored
        finally:
            self.last_deleted = None
            self._save_state()

    # -- session -----------------------------------------------------------

    def login(self, email: str, password: str) -> dict:
        """Log in, push any guest tasks to the account, and reload."""
        user = self.api.login(email, password)
        guest_tasks = self.store.load_tasks()
        if guest_tasks:
            payload = [{k: v for k, v in t.items() if k != "id"}
                       for t in guest_tasks]
            try:
                self.api.import_tasks(payload)
            except ApiError as e:
                logger.error("Failed to sync guest tasks: %r", e)
            else:
                self.store.clear_tasks()
                logger.info("Synced %d guest tasks", len(payload))
        self.load()
        return user

    def logout(self) -> None:
        try:
            self.api.logout()
        except ApiError as e:
            logger.warning("Logout request failed: %r", e)
        self.load()
