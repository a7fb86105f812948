"""
Subtask service: checklist items attached to a task.
"""

from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.errors import AppError
from Data.models import Task, Subtask
from services.task_service import subtask_to_dict


def _owned_task(db: Session, task_id: str, user_id: str) -> Task | None:
    return db.query(Task).filter(Task.id == task_id,
                                 Task.user_id == user_id).first()


def _owned_subtask(db: Session, task_id: str, subtask_id: str,
                   user_id: str) -> Subtask | None:
    return (
        db.query(Subtask)
        .join(Task, Subtask.task_id == Task.id)
        .filter(Subtask.id == subtask_id, Subtask.task_id == task_id,
                Task.user_id == user_id)
        .first()
    )


def add_subtask(
    db: Session,
    task_id: str,
    user_id: str,
    title: str,
    description: str | None = None,
    is_completed: bool = False,
) -> dict | None:
    """Append a subtask to a task. Returns None if the task is not the user's."""
    task = _owned_task(db, task_id, user_id)
    if not task:
        return None
    title = (title or "").strip()
    if not title:
        raise AppError("Subtask title is required")
    last = (
        db.query(func.max(Subtask.order_index))
        .filter(Subtask.task_id == task_id)
        .scalar()
    )
    subtask = Subtask(
        task_id=task_id,
        title=title,
        description=description,
        is_completed=is_completed,
        order_index=0 if last is None else last + 1,
    )
    db.add(subtask)
    task.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(subtask)
    return subtask_to_dict(subtask)


def update_subtask(db: Session, task_id: str, subtask_id: str, user_id: str,
                   changes: dict) -> dict | None:
    """Update a subtask. Only the keys present in ``changes`` are applied."""
    subtask = _owned_subtask(db, task_id, subtask_id, user_id)
    if not subtask:
        return None
    if changes.get("title") is not None:
        title = changes["title"].strip()
        if not title:
            raise AppError("Subtask title is required")
        subtask.title = title
    if "description" in changes:
        subtask.description = changes["description"]
    if changes.get("is_completed") is not None:
        subtask.is_completed = bool(changes["is_completed"])
    if changes.get("order_index") is not None:
        subtask.order_index = changes["order_index"]
    db.commit()
    db.refresh(subtask)
    return subtask_to_dict(subtask)


def delete_subtask(db: Session, task_id: str, subtask_id: str,
                   user_id: str) -> bool:
    subtask = _owned_subtask(db, task_id, subtask_id, user_id)
    if not subtask:
        return False
    db.delete(subtask)
    db.commit()
    return True
