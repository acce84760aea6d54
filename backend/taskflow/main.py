import asyncio
import logging
from contextlib import suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import DBAPIError

from taskflow.api.v1.api import api_router
from taskflow.core.config import settings
from taskflow.core.logging_setup import configure_logging
from taskflow.core.rate_limit import limiter
from taskflow.core.version import __version__
from taskflow.db.errors import http_error_for, sqlstate_of
from taskflow.db.session import run_migrations
from taskflow.services.change_feed import start_change_feed

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    docs_url=f"{settings.API_V1_STR}/docs",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    redoc_url=None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.exception_handler(DBAPIError)
async def database_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Translate policy and constraint failures into client errors.

    Permission failures get a fixed message so responses never echo which
    policy or row was involved.
    """
    mapped = http_error_for(exc)
    if mapped is None:
        logger.exception("Unhandled database error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    status_code, detail = mapped
    logger.info(
        "Database rejected %s %s (SQLSTATE %s)", request.method, request.url.path, sqlstate_of(exc)
    )
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings.LOG_LEVEL)
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        await run_migrations()
    change_feed = start_change_feed()
    app.state.background_tasks = [change_feed] if change_feed else []


@app.on_event("shutdown")
async def on_shutdown() -> None:
    tasks = getattr(app.state, "background_tasks", [])
    for task in tasks:
        task.cancel()
    for task in tasks:
        with suppress(asyncio.CancelledError):
            await task
