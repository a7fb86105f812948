"""Activity API: the current user's action history."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from Data.database import get_db
from Data.models import User
from services import activity_service, auth_service

router = APIRouter()


@router.get("")
async def list_activity(
    task_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=activity_service.MAX_LIMIT),
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """List activity entries, newest first, optionally for one task."""
    return activity_service.list_activity(db, user.id, task_id=task_id,
                                          limit=limit)
