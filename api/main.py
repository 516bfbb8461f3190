"""
Task Planner FastAPI Application.

Serves the task REST API, the next-date preview endpoint, health checks,
Prometheus metrics and (when present) the static web client.
"""

import time
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from engine import InvalidDate, InvalidRule, TaskNotFound, TaskValidationError, today
from observability.health import SystemHealthMonitor
from observability.logging import (
    api_logger, set_request_context, clear_request_context,
    generate_request_id, configure_logging,
)
from observability.metrics import planner_metrics, METRICS_CONTENT_TYPE

from . import __version__
from .config import AppConfig
from .dependencies import build_engine, build_session_factory
from .routes import tasks, nextdate
from .store import TaskStore

logger = api_logger


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[TaskStore] = None,
    db_engine: Optional[Engine] = None,
    clock: Callable[[], date] = today,
) -> FastAPI:
    """
    Build the application.

    When ``store`` is omitted the SQLite database from ``config`` is opened at
    startup. Tests pass their own store, engine and clock.
    """
    config = config or AppConfig.from_environment()
    configure_logging(config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_engine = None
        if app.state.store is None:
            owned_engine = build_engine(config.database_url)
            app.state.db_engine = owned_engine
            app.state.health_monitor.db_engine = owned_engine
            app.state.store = TaskStore(build_session_factory(owned_engine), clock=app.state.clock)

        logger.info(f"Starting task planner API v{__version__}", environment=config.environment)
        try:
            total = app.state.store.count()
            planner_metrics.set_stored_tasks(total)
            logger.info("Task store ready", database=config.database_url, total=total)
        except Exception as e:
            logger.error("Database connection failed on startup", exception=str(e))
            raise

        yield

        logger.info("Shutting down task planner API")
        if owned_engine is not None:
            owned_engine.dispose()

    app = FastAPI(
        title="Task Planner",
        description="""
        Personal task planner with recurring tasks.

        * **Tasks**: create, list, update, complete and delete tasks
        * **Repeat rules**: `d <n>`, `y`, `m <days> [months]`, `w <weekdays>`
        * **Preview**: `/api/nextdate` computes the next occurrence of a rule

        Dates are plain calendar dates in `YYYYMMDD` format.
        """,
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "tasks", "description": "Task management and completion"},
            {"name": "nextdate", "description": "Repeat rule preview"},
            {"name": "health", "description": "Health and monitoring endpoints"},
        ],
    )

    app.state.config = config
    app.state.store = store
    app.state.db_engine = db_engine
    app.state.clock = clock
    app.state.health_monitor = SystemHealthMonitor(db_engine)

    # Exception handlers
    @app.exception_handler(InvalidDate)
    @app.exception_handler(InvalidRule)
    @app.exception_handler(TaskValidationError)
    async def bad_request_handler(request: Request, exc: Exception):
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(TaskNotFound)
    async def not_found_handler(request: Request, exc: TaskNotFound):
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return _error(status.HTTP_400_BAD_REQUEST, f"Invalid request: {problems}")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception in API request", path=request.url.path)
        message = str(exc) if config.debug else "An unexpected error occurred"
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    # Request middleware for logging, metrics, and request IDs
    @app.middleware("http")
    async def request_middleware(request: Request, call_next):
        request_id = generate_request_id()
        request.state.request_id = request_id
        set_request_context(request_id=request_id)
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                duration_ms=(time.time() - start_time) * 1000,
                exception=str(e)
            )
            clear_request_context()
            raise

        duration = time.time() - start_time
        route = request.scope.get("route")
        path = getattr(route, "path", "unmatched")

        planner_metrics.record_http_request(request.method, path, response.status_code, duration)
        logger.api_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration * 1000
        )
        response.headers["X-Request-ID"] = request_id
        clear_request_context()
        return response

    app.include_router(tasks.router)
    app.include_router(nextdate.router)

    # Health check endpoints
    @app.get("/health", tags=["health"])
    async def health_check(request: Request):
        """Health of the API and its database."""
        report = await app.state.health_monitor.get_system_health(
            request_id=getattr(request.state, "request_id", None)
        )
        code = status.HTTP_200_OK if report.status.value != "unhealthy" else status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(status_code=code, content=report.to_dict())

    @app.get("/health/ready", tags=["health"])
    async def readiness_check():
        """Returns 200 when the database is reachable, 503 otherwise."""
        health_status = await app.state.health_monitor.get_quick_health()
        if not health_status.get("database", False):
            return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Database is not available")
        return {"status": "ready", **health_status}

    @app.get("/health/live", tags=["health"])
    async def liveness_check():
        return {
            "status": "alive",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": app.state.health_monitor.get_uptime()
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        if app.state.store is not None:
            try:
                planner_metrics.set_stored_tasks(app.state.store.count())
            except Exception as e:
                logger.warning("Could not refresh stored task gauge", exception=str(e))
        return Response(content=planner_metrics.export(), media_type=METRICS_CONTENT_TYPE)

    # The web client owns "/" when it is installed; mount it last so API
    # routes keep precedence.
    web_dir = Path(config.web_dir)
    if web_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(web_dir), html=True), name="web")
    else:
        @app.get("/", include_in_schema=False)
        async def root():
            return {
                "service": "Task Planner",
                "version": __version__,
                "environment": config.environment,
                "status": "running",
                "docs_url": "/docs",
                "health_url": "/health"
            }

    return app


app = create_app()


if __name__ == "__main__":
    # For local development
    import uvicorn

    settings = AppConfig.from_environment()
    uvicorn.run(
        "api.main:app",
        host=settings.listen_address,
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
