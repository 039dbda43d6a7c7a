from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from heritage360.api.achievements import router as achievements_router
from heritage360.api.admin import router as admin_router
from heritage360.api.certificates import router as certificates_router
from heritage360.api.courses import router as courses_router
from heritage360.api.errors import install_error_handlers
from heritage360.api.health import router as health_router
from heritage360.api.lessons import router as lessons_router
from heritage360.api.metrics_endpoint import router as metrics_router
from heritage360.api.progress import router as progress_router
from heritage360.core.config import SETTINGS
from heritage360.core.logging import setup_logging
from heritage360.db.engine import lifespan_db
from heritage360.db.redis import lifespan_redis
from heritage360.middleware.metrics import MetricsMiddleware
from heritage360.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order of startup.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="heritage360-learning",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route handler,
# so every request has an ID before metrics are recorded.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

install_error_handlers(app)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(courses_router)
app.include_router(lessons_router)
app.include_router(progress_router)
app.include_router(achievements_router)
app.include_router(certificates_router)
app.include_router(admin_router)

logger.info(
    "heritage360-learning started  env=%s log_level=%s port=%d streak_tz=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.streak_timezone,
    "on" if SETTINGS.is_dev else "off",
)
