# src/hookstream/main.py
"""Main entry point for the hookstream relay."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from hookstream.api.v1 import clients_router, failed_events_router, health_router, webhooks_router
from hookstream.core.logging import configure_logging
from hookstream.core.settings import settings
from hookstream.services.retry import RetryScheduler
from hookstream.services.stream_api import get_stream_api_client

logger = logging.getLogger(__name__)

# Paths excluded from request logging
_QUIET_PATHS = frozenset({"/health", "/ready"})

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Webhook receiver relaying provider events to the stream API",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    if request.url.path in _QUIET_PATHS:
        return await call_next(request)

    start_time = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - start_time) * 1000,
    )
    return response


# Include API routers
app.include_router(health_router)
app.include_router(webhooks_router)
app.include_router(failed_events_router)
app.include_router(clients_router)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.retry_job_enabled:
        scheduler = RetryScheduler(get_stream_api_client())
        await scheduler.start()
        app.state.retry_scheduler = scheduler
    else:
        app.state.retry_scheduler = None
    logger.info(
        "%s %s started (%s)", settings.app_name, settings.app_version, settings.environment
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    scheduler: RetryScheduler | None = getattr(app.state, "retry_scheduler", None)
    if scheduler:
        await scheduler.stop()
    await get_stream_api_client().close()
    logger.info("Graceful shutdown complete")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hookstream.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
