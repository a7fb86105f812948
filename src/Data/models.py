"""
SQLAlchemy models for YoursKanban.
"""

from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    ForeignKey,
    Integer,
    Boolean,
    Enum,
    JSON,
)
from sqlalchemy.orm import relationship
import enum

from Data.database import Base, generate_uuid, utcnow


# --------------------------------------------------------------------------- #
# Enums
# --------------------------------------------------------------------------- #

class TaskStatus(str, enum.Enum):
    todo = "todo"
    progress = "progress"
    done = "done"


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ActivityAction(str, enum.Enum):
    user_registered = "user_registered"
    user_logged_in = "user_logged_in"
    task_created = "task_created"
    task_updated = "task_updated"
    task_status_changed = "task_status_changed"
    task_deleted = "task_deleted"
    tasks_reordered = "tasks_reordered"


# --------------------------------------------------------------------------- #
# Models
# --------------------------------------------------------------------------- #

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    # Firebase accounts have no local password
    password_hash = Column(String(255), nullable=True)
    firebase_uid = Column(String(255), unique=True, nullable=True, index=True)
    email_verified = Column(Boolean, default=False)
    photo_url = Column(Text, nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    tasks = relationship("Task", back_populates="user",
                         cascade="all, delete-orphan")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(TaskStatus), default=TaskStatus.todo, nullable=False
    )
    priority = Column(
        Enum(TaskPriority), default=TaskPriority.medium, nullable=False
    )
    due_date = Column(DateTime, nullable=True)
    position = Column(Integer, default=0, nullable=False)
    pinned = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="tasks")
    subtasks = relationship(
        "Subtask",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Subtask.order_index",
    )


class Subtask(Base):
    __tablename__ = "subtasks"

    id = Column(String, primary_key=True, default=generate_uuid)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    task = relationship("Task", back_populates="subtasks")


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    # Not a foreign key: history outlives deleted tasks
    task_id = Column(String, nullable=True, index=True)
    action = Column(String(50), nullable=False)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)
