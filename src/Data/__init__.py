"""
Data layer: database engine, models, and session utilities.
"""

from Data.database import engine, SessionLocal, Base, get_db, init_db, generate_uuid, utcnow  # noqa: F401
from Data.models import (  # noqa: F401
    User,
    Task,
    Subtask,
    ActivityLog,
    TaskStatus,
    TaskPriority,
    ActivityAction,
)
