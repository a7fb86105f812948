"""
Activity service: append-only log of user and task actions.
"""

import logging

from sqlalchemy.orm import Session

from Data.models import ActivityLog

logger = logging.getLogger(__name__)

MAX_LIMIT = 200


def log_activity(
    db: Session,
    user_id: str,
    action: str,
    task_id: str | None = None,
    meta: dict | None = None,
) -> None:
    """Record an action. Failures are logged and never propagate."""
    try:
        db.add(ActivityLog(user_id=user_id, task_id=task_id,
                           action=getattr(action, "value", action),
                           meta=meta or {}))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Error logging activity %s for user %s",
                         action, user_id)


def list_activity(
    db: Session,
    user_id: str,
    task_id: str | None = None,
    limit: int = 50,
) -> list:
    """List a user's activity, newest first."""
    limit = max(1, min(limit, MAX_LIMIT))
    query = db.query(ActivityLog).filter(ActivityLog.user_id == user_id)
    if task_id:
        query = query.filter(ActivityLog.task_id == task_id)
    logs = (
        query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
    return [_activity_to_dict(entry) for entry in logs]


def _activity_to_dict(entry: ActivityLog) -> dict:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "task_id": entry.task_id,
        "action": entry.action,
        "meta": entry.meta or {},
        "created_at": entry.created_at.isoformat()
        if entry.created_at else None,
    }
