"""
@file: middleware.py
@description:
Middleware stack of the Cloude API: CORS for the web frontend, an HTTPS
redirect behind the production proxy, and one log line per request.

@dependencies:
- fastapi / starlette: CORSMiddleware, BaseHTTPMiddleware, RedirectResponse
- cloude.core.config: APP_ENV, DEBUG and CORS_ORIGINS
- cloude.core.logger: For structured logging
"""

import time
from typing import Callable, List

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from cloude.core.config import settings
from cloude.core.logger import setup_logger, log_request_details

# Create a component-specific logger
logger = setup_logger("cloude.core.middleware")

LOCAL_FRONTEND_ORIGINS = ["http://localhost:3000", "http://localhost:5000"]

def allowed_origins() -> List[str]:
    """
    Origins the frontend may call from: any outside production, otherwise
    CORS_ORIGINS (plus the local dev servers when DEBUG is on).
    """
    if not settings.is_production:
        return ["*"]
    origins = list(settings.CORS_ORIGINS)
    if settings.DEBUG:
        origins += [origin for origin in LOCAL_FRONTEND_ORIGINS if origin not in origins]
    return origins

def setup_cors(app: FastAPI) -> None:
    origins = allowed_origins()
    logger.info(f"CORS origins: {origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=86400,
    )

class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """
    Redirect plain HTTP requests to HTTPS in production.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if settings.is_production:
            # Behind a proxy the original scheme is in X-Forwarded-Proto
            scheme = request.headers.get("X-Forwarded-Proto", request.url.scheme)
            if scheme == "http":
                https_url = str(request.url.replace(scheme="https"))
                logger.debug(f"Redirecting HTTP request to HTTPS: {https_url}")
                return RedirectResponse(https_url, status_code=301)

        return await call_next(request)

def setup_https_redirect(app: FastAPI) -> None:
    """Production only."""
    if settings.is_production:
        logger.info("Setting up HTTPS redirect middleware for production")
        app.add_middleware(HTTPSRedirectMiddleware)
    else:
        logger.debug("HTTPS redirect middleware not added (not in production mode)")

def _client_ip(request: Request) -> str:
    # First hop of X-Forwarded-For is the browser when running behind the proxy
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    if forwarded_for.strip():
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, URL, status and duration of every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        logger.debug(f"{request.method} {request.url.path} from {_client_ip(request)}")

        response = await call_next(request)

        log_request_details(logger, request, time.perf_counter() - started, response.status_code)
        return response

def setup_request_logging(app: FastAPI) -> None:
    app.add_middleware(RequestLoggingMiddleware)

def setup_all_middleware(app: FastAPI) -> None:
    """
    Install every middleware on the app.

    Starlette runs the last-added middleware first, so CORS (added last) also
    answers preflights for redirected and logged requests.
    """
    setup_request_logging(app)
    setup_https_redirect(app)
    setup_cors(app)

    logger.info("All middleware initialized successfully")
