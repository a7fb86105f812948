import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .activity_api import router as activity_router
from .auth_api import router as auth_router, me as me_endpoint
from .errors import register_exception_handlers
from .health_api import router as health_router
from .task_api import router as task_router
from core.config import settings
from Data.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create DB tables and apply column migrations
    init_db()
    logger.info("YoursKanban API started (auth provider: %s, env: %s)",
                settings.auth_provider, settings.env)
    yield
    logger.info("YoursKanban API stopped")


app = FastAPI(title="YoursKanban", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %d %.1fms", request.method, request.url.path,
                response.status_code, elapsed_ms)
    return response


register_exception_handlers(app)

app.include_router(health_router, prefix="/api", tags=["Health"])
app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.add_api_route("/api/me", me_endpoint, methods=["GET"],
                  tags=["Authentication"])
app.include_router(task_router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(task_router, prefix="/api/v1/tasks", tags=["Tasks v1"])
app.include_router(activity_router, prefix="/api/activity", tags=["Activity"])
