"""Middleware registration."""

from fastapi import FastAPI

from storytrail.config import Settings
from storytrail.middleware.cors import setup_cors
from storytrail.middleware.error_handler import setup_error_handlers
from storytrail.middleware.logging import setup_logging
from storytrail.middleware.rate_limit import RateLimitMiddleware
from storytrail.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap error responses (401/403/429) produced further in.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
