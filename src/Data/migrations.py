"""
Column migrations for databases created before a column existed.

``create_all`` only creates missing tables, so columns added later are
applied here. Each migration runs once; applied versions are recorded in
the ``schema_migrations`` table.
"""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# (version, table, column, column DDL)
MIGRATIONS = [
    ("0001_add_firebase_uid", "users", "firebase_uid", "VARCHAR(255)"),
    ("0001_add_email_verified", "users", "email_verified", "BOOLEAN DEFAULT FALSE"),
    ("0001_add_photo_url", "users", "photo_url", "TEXT"),
    ("0001_add_last_login", "users", "last_login", "TIMESTAMP"),
    ("0002_add_pinned", "tasks", "pinned", "BOOLEAN NOT NULL DEFAULT FALSE"),
    ("0003_add_position", "tasks", "position", "INTEGER NOT NULL DEFAULT 0"),
]


def _ensure_version_table(conn) -> set[str]:
    conn.execute(text(
        "CREATE TABLE IF NOT EXISTS schema_migrations ("
        "version VARCHAR(100) PRIMARY KEY, "
        "applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
    ))
    rows = conn.execute(text("SELECT version FROM schema_migrations"))
    return {row[0] for row in rows}


def run_migrations(engine: Engine) -> list[str]:
    """Apply pending column migrations. Returns the versions applied now."""
    applied_now = []
    with engine.begin() as conn:
        applied = _ensure_version_table(conn)
        inspector = inspect(conn)
        tables = set(inspector.get_table_names())
        columns = {
            table: {c["name"] for c in inspector.get_columns(table)}
            for table in tables
        }
        for version, table, column, ddl in MIGRATIONS:
            if version in applied:
                continue
            if table not in tables:
                logger.warning("Skipping %s: table %s does not exist",
                               version, table)
                continue
            if column not in columns[table]:
                conn.execute(text(
                    f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"
                ))
                columns[table].add(column)
                logger.info("Applied migration %s", version)
            conn.execute(
                text("INSERT INTO schema_migrations (version) VALUES (:v)"),
                {"v": version},
            )
            applied_now.append(version)
    return applied_now
