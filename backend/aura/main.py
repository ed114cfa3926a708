"""Aura backend - FastAPI application"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from aura.api import catalog, contractors, monitoring, payment_methods, profiles, purchases, session, subscriptions
from aura.core.config import settings
from aura.core.context import build_context
from aura.core.errors import AuraError
from aura.core.logging import setup_logging
from aura.core.middleware import setup_access_log_middleware, setup_cors_middleware
from aura.core import otel

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the process context on startup, close it on shutdown"""
    otel_initialized = otel.initialize_otel()
    if otel_initialized:
        otel.instrument_httpx()
        if otel.setup_otel_logging():
            logger.info(f"OpenTelemetry fully initialized, exporting to {settings.OTEL_EXPORTER_OTLP_ENDPOINT}")
        else:
            logger.warning("OpenTelemetry metrics/traces initialized but logging setup failed")
    else:
        logger.info("OpenTelemetry not configured - running without distributed tracing")

    app.state.context = build_context(settings)
    logger.info(f"Aura backend started ({settings.ENVIRONMENT})")

    yield

    # Shutdown
    logger.info("Shutting down...")
    app.state.context.close()


# Create FastAPI app
app = FastAPI(
    title="Aura Backend",
    description="Sessions, profiles and billing for the Aura app",
    version="1.0.0",
    lifespan=lifespan
)

if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
    otel.instrument_fastapi(app)

setup_cors_middleware(app)
setup_access_log_middleware(app)


@app.exception_handler(AuraError)
async def aura_error_handler(request: Request, exc: AuraError):
    """Render service errors as {"error": message, "kind": kind}"""
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed ({exc.kind.value}): {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.kind.value}): {exc.detail}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


# Include routers
app.include_router(session.router)
app.include_router(profiles.router)
app.include_router(profiles.customers_router)
app.include_router(payment_methods.router)
app.include_router(subscriptions.router)
app.include_router(subscriptions.stripe_router)
app.include_router(purchases.router)
app.include_router(catalog.router)
app.include_router(contractors.router)
app.include_router(monitoring.router)
