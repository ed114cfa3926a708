"""Middleware configuration for FastAPI application"""
import logging
import time
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware

from aura.core.config import settings

logger = logging.getLogger(__name__)
api_access_logger = logging.getLogger("api_access")


def get_allowed_origins():
    """Get list of allowed CORS origins (the desktop/mobile webview origins)"""
    allowed_origins = [settings.FRONTEND_URL, "tauri://localhost", "http://tauri.localhost"]
    if settings.ENVIRONMENT == "development":
        allowed_origins.extend([
            "http://localhost:1420",
            "http://localhost:5173",
            "http://127.0.0.1:1420",
            "http://127.0.0.1:5173"
        ])
    return allowed_origins


def setup_cors_middleware(app):
    """Setup CORS middleware for FastAPI app"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def setup_access_log_middleware(app):
    """Log one line per request with status and latency"""

    @app.middleware("http")
    async def access_log_middleware(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        if request.url.path not in ("/metrics", "/health"):
            api_access_logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
            )
        return response
