# src/quill/main.py
"""Main entry point for the Quill application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quill.api.middleware import (
    NonAdminDataPurgeMiddleware,
    RequestLoggingMiddleware,
    VisitorRegistrarMiddleware,
)
from quill.api.v1 import (
    auth_router,
    characters_router,
    chats_router,
    images_router,
    notifications_router,
    posts_router,
    profiles_router,
    stats_router,
    users_router,
)
from quill.core.errors import AppError
from quill.core.logging import configure_logging
from quill.core.settings import settings
from quill.services.storage import close_storage

logger = logging.getLogger(__name__)

DESCRIPTION = "Blogging and social networking API"

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=DESCRIPTION,
    version=settings.app_version,
)

app.add_middleware(VisitorRegistrarMiddleware)
app.add_middleware(NonAdminDataPurgeMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(profiles_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(images_router, prefix="/api/v1")
app.include_router(chats_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(characters_router, prefix="/api/v1")
app.include_router(stats_router, prefix="/api/v1")


def _error(status_code: int, name: str, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"name": name, "message": message, **extra}},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> Response:
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        return Response(status_code=status.HTTP_401_UNAUTHORIZED)
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.name, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = [
        {
            "path": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    message = issues[0]["message"] if issues else "Invalid request"
    return _error(status.HTTP_400_BAD_REQUEST, "ValidationError", message, issues=issues)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Cannot {request.method} {request.url.path}"
        return _error(exc.status_code, "UnknownRouteError", message)
    return _error(exc.status_code, "HTTPError", str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "ServerError", "something went wrong")


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    logger.info("%s %s starting", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await close_storage()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": DESCRIPTION,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("quill.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
