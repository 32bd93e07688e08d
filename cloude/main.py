"""
Main application entry point for the Cloude Backend API.

This module initializes the FastAPI application with middleware, exception
handling and routers, and runs it with uvicorn when executed directly.
"""

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from cloude.api import auth, files, folders, health, profile
from cloude.core.config import settings
from cloude.core.logger import setup_logger
from cloude.core.middleware import setup_all_middleware

API_VERSION = "0.1.0"

logger = setup_logger("cloude.main")


def create_app() -> FastAPI:
    """
    Build the FastAPI application with all middleware and routers mounted.
    """
    application = FastAPI(
        title="Cloude API",
        description="Backend API for a personal cloud storage backed by Supabase",
        version=API_VERSION,
    )

    setup_all_middleware(application)

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unexpected error in {request.method} {request.url.path}: {exc!r}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @application.get("/")
    async def root():
        """
        Root endpoint providing a simple liveness check and API information.
        """
        return {
            "status": "online",
            "api": "Cloude Backend API",
            "version": API_VERSION,
        }

    @application.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return {}

    application.include_router(health.router, prefix="/api")
    application.include_router(auth.router, prefix="/api/auth")
    application.include_router(files.router, prefix="/api/files")
    application.include_router(folders.router, prefix="/api/folders")
    application.include_router(profile.router, prefix="/api/profile")

    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("cloude.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
