"""
Task service: CRUD, ordering and bulk operations for board tasks.
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.errors import AppError
from Data.models import Task, Subtask, TaskStatus, TaskPriority, ActivityAction
from services import activity_service

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
COPY_SUFFIX = " (Copy)"
UPDATABLE_FIELDS = ("title", "description", "status", "priority", "due_date",
                    "position", "pinned", "subtasks")

_STATUS_ALIASES = {
    "in-progress": TaskStatus.progress,
    "in_progress": TaskStatus.progress,
    "inprogress": TaskStatus.progress,
}


def normalize_status(value, default: TaskStatus | None = TaskStatus.todo) -> TaskStatus:
    """Map a client status string onto TaskStatus."""
    if value is None or value == "":
        if default is None:
            raise AppError("Status is required")
        return default
    if isinstance(value, TaskStatus):
        return value
    key = str(value).strip().lower()
    if key in _STATUS_ALIASES:
        return _STATUS_ALIASES[key]
    try:
        return TaskStatus(key)
    except ValueError:
        raise AppError(f"Invalid status: {value}")


def normalize_priority(value) -> TaskPriority:
    if value is None or value == "":
        return TaskPriority.medium
    if isinstance(value, TaskPriority):
        return value
    try:
        return TaskPriority(str(value).strip().lower())
    except ValueError:
        raise AppError(f"Invalid priority: {value}")


def parse_due_date(value) -> datetime | None:
    """
    Parse a due date sent by any of the clients.

    Accepts datetimes, ISO date/datetime strings and epoch numbers
    (> 1e12 milliseconds, > 1e9 seconds, anything smaller milliseconds).
    Unparseable input yields None. Aware values are stored as naive UTC.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, (int, float)) or str(value).strip().isdigit():
            ts = float(value)
            # Seconds only in the (1e9, 1e12] band
            if ts > 1e12 or ts <= 1e9:
                ts = ts / 1000
            parsed = datetime.fromtimestamp(ts, tz=timezone.utc)
        else:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        logger.warning("Error parsing due date %r", value)
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _clean_title(title) -> str:
    title = (title or "").strip()
    if not title:
        raise AppError("Title is required")
    return title


def _next_position(db: Session, user_id: str, status: TaskStatus) -> int:
    current = (
        db.query(func.max(Task.position))
        .filter(Task.user_id == user_id, Task.status == status)
        .scalar()
    )
    return (current or 0) + 1


def _build_subtasks(items: list[dict]) -> list[Subtask]:
    subtasks = []
    for index, item in enumerate(items):
        title = (item.get("title") or item.get("description") or "").strip()
        if not title:
            continue
        subtasks.append(Subtask(
            title=title,
            description=item.get("description"),
            is_completed=bool(item.get("is_completed", False)),
            order_index=index,
        ))
    return subtasks


def _get_owned(db: Session, task_id: str, user_id: str) -> Task | None:
    return db.query(Task).filter(Task.id == task_id,
                                 Task.user_id == user_id).first()


def create_task(
    db: Session,
    user_id: str,
    title: str,
    description: str | None = None,
    status=None,
    priority=None,
    due_date=None,
    position: int | None = None,
    pinned: bool = False,
    subtasks: list[dict] | None = None,
) -> dict:
    """Create a new task for a user, at the end of its column by default."""
    task_status = normalize_status(status)
    task = Task(
        user_id=user_id,
        title=_clean_title(title),
        description=description,
        status=task_status,
        priority=normalize_priority(priority),
        due_date=parse_due_date(due_date),
        position=position if position is not None
        else _next_position(db, user_id, task_status),
        pinned=bool(pinned),
    )
    task.subtasks = _build_subtasks(subtasks or [])
    db.add(task)
    db.commit()
    db.refresh(task)
    activity_service.log_activity(
        db, user_id, ActivityAction.task_created, task.id,
        {"title": task.title, "status": task.status.value},
    )
    return task_to_dict(task)


def list_tasks(db: Session, user_id: str, status: str | None = None,
               priority: str | None = None) -> list:
    """
    List a user's tasks: pinned first, then by position, newest first.

    Unknown status or priority filters (including "all") are ignored.
    """
    query = db.query(Task).filter(Task.user_id == user_id)
    if status:
        try:
            query = query.filter(Task.status == normalize_status(status))
        except AppError:
            logger.debug("Ignoring unknown status filter %r", status)
    if priority:
        try:
            query = query.filter(Task.priority == normalize_priority(priority))
        except AppError:
            logger.debug("Ignoring unknown priority filter %r", priority)
    tasks = query.order_by(
        Task.pinned.desc(), Task.position.asc(), Task.created_at.desc()
    ).all()
    return [task_to_dict(t) for t in tasks]


def get_task(db: Session, task_id: str, user_id: str) -> dict | None:
    """Get a single task."""
    task = _get_owned(db, task_id, user_id)
    if not task:
        return None
    return task_to_dict(task)


def update_task(db: Session, task_id: str, user_id: str, changes: dict) -> dict | None:
    """Update a task. Only the keys present in ``changes`` are applied."""
    if not any(field in changes for field in UPDATABLE_FIELDS):
        raise AppError("No valid fields to update")
    task = _get_owned(db, task_id, user_id)
    if not task:
        return None
    previous_status = task.status

    if changes.get("title") is not None:
        task.title = _clean_title(changes["title"])
    if "description" in changes:
        task.description = changes["description"]
    if changes.get("status") is not None:
        task.status = normalize_status(changes["status"])
    if changes.get("priority") is not None:
        task.priority = normalize_priority(changes["priority"])
    if "due_date" in changes:
        task.due_date = parse_due_date(changes["due_date"])
    if changes.get("position") is not None:
        task.position = changes["position"]
    if changes.get("pinned") is not None:
        task.pinned = bool(changes["pinned"])
    if changes.get("subtasks") is not None:
        task.subtasks = _build_subtasks(changes["subtasks"])
    task.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(task)

    action = (ActivityAction.task_status_changed
              if task.status != previous_status else ActivityAction.task_updated)
    activity_service.log_activity(db, user_id, action, task.id, {
        "title": task.title,
        "status": task.status.value,
        "previous_status": previous_status.value,
    })
    return task_to_dict(task)


def delete_task(db: Session, task_id: str, user_id: str) -> bool:
    """Delete a task and all its subtasks."""
    task = _get_owned(db, task_id, user_id)
    if not task:
        return False
    meta = {"title": task.title, "status": task.status.value}
    db.delete(task)
    db.commit()
    activity_service.log_activity(db, user_id, ActivityAction.task_deleted,
                                  task_id, meta)
    return True


def duplicate_task(db: Session, task_id: str, user_id: str) -> dict | None:
    """Copy a task (and its subtasks) to the end of the same column."""
    source = _get_owned(db, task_id, user_id)
    if not source:
        return None
    title = source.title
    if COPY_SUFFIX not in title:
        title = f"{title}{COPY_SUFFIX}"
    return create_task(
        db,
        user_id,
        title=title,
        description=source.description,
        status=source.status,
        priority=source.priority,
        due_date=source.due_date,
        pinned=False,
        subtasks=[
            {"title": s.title, "description": s.description,
             "is_completed": s.is_completed}
            for s in source.subtasks
        ],
    )


def reorder_tasks(db: Session, user_id: str, items: list[dict]) -> int:
    """
    Apply a drag-and-drop ordering: each listed task gets position = index
    and, when given, its new status. Tasks the user does not own are
    skipped. An invalid status is ignored but the position still applies.
    """
    if not items:
        raise AppError("Tasks array is required")
    ids = [item["id"] for item in items]
    owned = {
        t.id: t for t in
        db.query(Task).filter(Task.user_id == user_id, Task.id.in_(ids)).all()
    }
    updated = 0
    for index, item in enumerate(items):
        task = owned.get(item["id"])
        if task is None:
            continue
        task.position = index
        if item.get("status"):
            try:
                task.status = normalize_status(item["status"])
            except AppError:
                logger.warning("Ignoring invalid status %r for task %s",
                               item["status"], task.id)
        updated += 1
    db.commit()
    activity_service.log_activity(db, user_id, ActivityAction.tasks_reordered,
                                  meta={"count": updated})
    return updated


def export_tasks(db: Session, user_id: str) -> dict:
    return {
        "version": EXPORT_VERSION,
        "tasks": list_tasks(db, user_id),
        "exported_at": datetime.now(timezone.utc).isoformat(),
    }


def import_tasks(db: Session, user_id: str, items: list[dict]) -> list:
    """Create tasks from client-side copies (e.g. guest boards); ids are dropped."""
    created = []
    for item in items:
        data = {k: v for k, v in item.items() if k != "id"}
        created.append(create_task(db, user_id, **data))
    logger.info("Imported %d tasks for user %s", len(created), user_id)
    return created


def task_to_dict(task: Task) -> dict:
    subtasks = [subtask_to_dict(s) for s in task.subtasks]
    return {
        "id": task.id,
        "user_id": task.user_id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value if task.status else "todo",
        "priority": task.priority.value if task.priority else "medium",
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "position": task.position,
        "pinned": bool(task.pinned),
        "created_at": task.created_at.isoformat() if task.created_at else None,
        "updated_at": task.updated_at.isoformat() if task.updated_at else None,
        "subtasks": subtasks,
        "subtask_count": len(subtasks),
        "completed_subtasks": sum(1 for s in subtasks if s["is_completed"]),
    }


def subtask_to_dict(subtask: Subtask) -> dict:
    return {
        "id": subtask.id,
        "task_id": subtask.task_id,
        "title": subtask.title,
        "description": subtask.description,
        "is_completed": bool(subtask.is_completed),
        "order_index": subtask.order_index,
        "created_at": subtask.created_at.isoformat()
        if subtask.created_at else None,
        "updated_at": subtask.updated_at.isoformat()
        if subtask.updated_at else None,
    }
