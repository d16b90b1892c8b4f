import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timekeeper.api.v1.analytics.router import router as analytics_router
from timekeeper.api.v1.attendance.router import router as attendance_router
from timekeeper.api.v1.auth.router import router as auth_router
from timekeeper.api.v1.employees.router import router as employees_router
from timekeeper.api.v1.tasks.router import router as tasks_router
from timekeeper.core.config import settings
from timekeeper.core.log_config import configure_logging
from timekeeper.db.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.bootstrap_on_startup:
        await init_db()
    yield


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": {"message": "Internal server error", "category": "server_error"}},
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Timekeeper", lifespan=lifespan)

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(employees_router)
    app.include_router(tasks_router)
    app.include_router(attendance_router)
    app.include_router(analytics_router)

    return app


app = create_app()
