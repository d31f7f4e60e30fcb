"""
Identity Reconciliation Service - FastAPI Application

Provides:
- POST /identify: consolidate an email/phone observation into a contact identity
- Health, readiness and liveness probes
- Prometheus metrics
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from reconciliation import __version__
from reconciliation.api.middleware import RequestIDMiddleware
from reconciliation.api.routes import health, identify
from reconciliation.config import get_settings
from reconciliation.db import close_db, create_schema, init_db
from reconciliation.kernel.http.errors import register_exception_handlers
from reconciliation.log import configure_logging
from reconciliation.monitoring import get_metrics

configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()

    logger.info(
        "Starting Identity Reconciliation Service",
        version=__version__,
        environment=settings.environment,
    )

    await init_db()
    if settings.db_create_schema:
        await create_schema()
    get_metrics()

    yield

    logger.info("Shutting down Identity Reconciliation Service")
    await close_db()


app = FastAPI(
    title="Identity Reconciliation API",
    description="Links contact observations sharing an email or phone number into one identity",
    version=__version__,
    lifespan=lifespan,
)

settings = get_settings()

register_exception_handlers(app)

# Request ID tracking
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

app.include_router(health.router, tags=["Health"])
app.include_router(identify.router, tags=["Identify"])


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "reconciliation.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
