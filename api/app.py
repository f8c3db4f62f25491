# Backend FastAPI application

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cache import init_cache, close_cache
from config.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from core import TastingError
from database import init_db, close_db
from scheduler import start_scheduler, stop_scheduler
from utils.metrics import (
    errors_total,
    http_request_duration,
    http_requests_total,
    init_app_info,
)

from .pages import router as pages_router
from .routes import router as api_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle: startup and shutdown."""
    setup_logging()
    init_app_info(app.version)
    logger.info("api_starting")

    await init_db()
    if not await init_cache():
        logger.warning("Redis unavailable, running without cache")
    start_scheduler()

    yield

    stop_scheduler()
    await close_cache()
    await close_db()
    logger.info("api_stopped")


app = FastAPI(
    title="Tea Tasting",
    description="Коллективные дегустации чая: оценки, сводки, ссылки доступа из Telegram",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Контекст запроса в логах + метрики времени обработки."""
    start_time = time.time()
    route_path = request.url.path

    bind_request_context(method=request.method, path=route_path)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()

    # Шаблон пути (/api/tastings/{tasting_id}), чтобы не плодить метки
    route = request.scope.get("route")
    if route is not None:
        route_path = route.path

    duration = time.time() - start_time
    http_request_duration.labels(method=request.method, path=route_path).observe(duration)
    http_requests_total.labels(
        method=request.method,
        path=route_path,
        status_code=response.status_code,
    ).inc()
    return response


@app.exception_handler(TastingError)
async def handle_tasting_error(request: Request, exc: TastingError):
    """Ошибки предметной области -> HTTP-ответ со своим статусом."""
    logger.info(
        "request_failed",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    """Непредвиденные ошибки (например, недоступна БД): лог + 500."""
    errors_total.labels(type="unhandled", module="api").inc()
    logger.error(
        "unhandled_error",
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Внутренняя ошибка сервера",
            "code": "INTERNAL_ERROR",
        },
    )


app.include_router(api_router)
app.include_router(pages_router)
