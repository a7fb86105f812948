"""Health endpoints with a database connectivity check."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from core.config import settings
from Data import database

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health():
    """Report database connectivity and the tables present."""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        with database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            tables = sorted(inspect(conn).get_table_names())
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        body = {
            "status": "error",
            "timestamp": timestamp,
            "database": "disconnected",
        }
        if not settings.is_production:
            body["error"] = str(e)
        return JSONResponse(status_code=500, content=body)
    return {
        "status": "ok",
        "timestamp": timestamp,
        "database": "connected",
        "tables": tables,
    }


@router.get("/v1/health")
async def health_v1():
    return {"status": "ok", "version": "v1"}
