"""Task API: CRUD, drag-and-drop reordering and subtask endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.orm import Session

from Data.database import get_db
from Data.models import User
from services import auth_service, subtask_service, task_service

router = APIRouter()

DueDate = str | int | float | None


class SubtaskIn(BaseModel):
    title: str | None = Field(
        None, validation_alias=AliasChoices("title", "text"))
    description: str | None = None
    is_completed: bool = Field(
        False,
        validation_alias=AliasChoices("is_completed", "completed", "is_done"),
    )


class SubtaskUpdate(BaseModel):
    title: str | None = Field(
        None, validation_alias=AliasChoices("title", "text"))
    description: str | None = None
    is_completed: bool | None = Field(
        None,
        validation_alias=AliasChoices("is_completed", "completed", "is_done"),
    )
    order_index: int | None = None


class TaskCreate(BaseModel):
    title: str
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    due_date: DueDate = Field(
        None, validation_alias=AliasChoices("due_date", "dueDate"))
    position: int | None = Field(
        None, validation_alias=AliasChoices("position", "order_index"))
    pinned: bool = Field(
        False, validation_alias=AliasChoices("pinned", "is_pinned", "isPinned"))
    subtasks: list[SubtaskIn] = []


class TaskUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    due_date: DueDate = Field(
        None, validation_alias=AliasChoices("due_date", "dueDate"))
    position: int | None = Field(
        None, validation_alias=AliasChoices("position", "order_index"))
    pinned: bool | None = Field(
        None, validation_alias=AliasChoices("pinned", "is_pinned", "isPinned"))
    subtasks: list[SubtaskIn] | None = None


class ReorderItem(BaseModel):
    id: str
    status: str | None = None


class ReorderRequest(BaseModel):
    tasks: list[ReorderItem] = []


class ImportRequest(BaseModel):
    tasks: list[TaskCreate] = []


def _not_found():
    return HTTPException(status_code=404, detail="Task not found")


@router.get("")
async def list_tasks(
    status: str | None = Query(None),
    priority: str | None = Query(None),
    user: User | None = Depends(auth_service.get_optional_user),
    db: Session = Depends(get_db),
):
    """List tasks, optionally filtered by status and priority.

    Anonymous callers get [].
    """
    if user is None:
        return []
    return task_service.list_tasks(db, user.id, status=status,
                                   priority=priority)


@router.post("", status_code=201)
async def create_task(
    body: TaskCreate,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new task."""
    return task_service.create_task(db, user.id, **body.model_dump())


@router.get("/export")
async def export_tasks(
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Export the whole board as JSON."""
    return task_service.export_tasks(db, user.id)


@router.post("/import", status_code=201)
async def import_tasks(
    body: ImportRequest,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Create tasks from a client-side board (guest sync)."""
    return task_service.import_tasks(
        db, user.id, [t.model_dump() for t in body.tasks])


@router.put("/reorder")
async def reorder_tasks(
    body: ReorderRequest,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Persist a drag-and-drop ordering."""
    updated = task_service.reorder_tasks(
        db, user.id, [item.model_dump() for item in body.tasks])
    return {"success": True, "updated": updated}


# Fixed paths that would otherwise be matched as a task id
RESERVED_PATHS = {"/export": "GET", "/import": "POST", "/reorder": "PUT"}
_ALL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


def _method_not_allowed(allowed: str):
    async def endpoint():
        raise HTTPException(status_code=405, headers={"Allow": allowed})
    return endpoint


for _path, _allowed in RESERVED_PATHS.items():
    router.add_api_route(
        _path,
        _method_not_allowed(_allowed),
        methods=[m for m in _ALL_METHODS if m != _allowed],
        include_in_schema=False,
    )


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Get a single task."""
    task = task_service.get_task(db, task_id, user.id)
    if not task:
        raise _not_found()
    return task


@router.put("/{task_id}")
@router.patch("/{task_id}")
async def update_task(
    task_id: str,
    body: TaskUpdate,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Update a task. Only the fields sent are changed."""
    task = task_service.update_task(
        db, task_id, user.id, body.model_dump(exclude_unset=True))
    if not task:
        raise _not_found()
    return task


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a task."""
    if not task_service.delete_task(db, task_id, user.id):
        raise _not_found()
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/duplicate", status_code=201)
async def duplicate_task(
    task_id: str,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Duplicate a task into the same column."""
    task = task_service.duplicate_task(db, task_id, user.id)
    if not task:
        raise _not_found()
    return task


@router.post("/{task_id}/subtasks", status_code=201)
async def add_subtask(
    task_id: str,
    body: SubtaskIn,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    subtask = subtask_service.add_subtask(
        db, task_id, user.id,
        title=body.title or body.description or "",
        description=body.description,
        is_completed=body.is_completed,
    )
    if not subtask:
        raise _not_found()
    return subtask


@router.patch("/{task_id}/subtasks/{subtask_id}")
async def update_subtask(
    task_id: str,
    subtask_id: str,
    body: SubtaskUpdate,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    subtask = subtask_service.update_subtask(
        db, task_id, subtask_id, user.id, body.model_dump(exclude_unset=True))
    if not subtask:
        raise HTTPException(status_code=404, detail="Subtask not found")
    return subtask


@router.delete("/{task_id}/subtasks/{subtask_id}")
async def delete_subtask(
    task_id: str,
    subtask_id: str,
    user: User = Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    if not subtask_service.delete_subtask(db, task_id, subtask_id, user.id):
        raise HTTPException(status_code=404, detail="Subtask not found")
    return {"message": "Subtask deleted successfully"}
