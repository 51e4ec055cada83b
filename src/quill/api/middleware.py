# src/quill/api/middleware.py
"""HTTP middlewares: request logging, visitor counting and the periodic purge."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from quill.core.settings import settings
from quill.db.session import get_session_factory
from quill.db.time import utcnow
from quill.services.purge import run_purge_if_due
from quill.services.stats import register_visitor
from quill.services.storage import get_storage

logger = logging.getLogger(__name__)

BROWSER_COOKIE_NAME = "browser"
VISITOR_COOKIE_NAME = "visitor"


def _resolve(request: Request, dependency: Callable[[], Any]) -> Any:
    """Call a dependency the way a route would, honouring app overrides."""
    return request.app.dependency_overrides.get(dependency, dependency)()


def _is_auth_path(path: str) -> bool:
    return "auth" in path.split("/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log ``METHOD path -> status (ms)`` for every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %s (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


class NonAdminDataPurgeMiddleware(BaseHTTPMiddleware):
    """Trigger the non-admin data purge on GET and auth requests when it is due.

    The purge runs before the request is handled; whatever happens to it, the
    request proceeds.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if settings.purge_enabled and (
            request.method == "GET" or _is_auth_path(request.url.path)
        ):
            await self._purge(request)
        return await call_next(request)

    async def _purge(self, request: Request) -> None:
        try:
            db = _resolve(request, get_session_factory)()
        except Exception as exc:
            logger.error("Could not open a session for the purge: %s", exc)
            return
        try:
            await run_purge_if_due(
                db,
                _resolve(request, get_storage),
                utcnow(),
                timedelta(seconds=settings.purge_interval_seconds),
            )
        finally:
            db.close()


class VisitorRegistrarMiddleware(BaseHTTPMiddleware):
    """Count unique browsers through a pair of long-lived cookies.

    ``browser`` marks a real browser (server-side renderers never send it back);
    a browser GET without ``visitor`` counts as a new visitor.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        cookies = request.cookies
        new_visitor = (
            request.method == "GET"
            and not _is_auth_path(request.url.path)
            and BROWSER_COOKIE_NAME in cookies
            and VISITOR_COOKIE_NAME not in cookies
        )
        response = await call_next(request)

        if new_visitor:
            self._register(request)
        self._set_cookie(response, BROWSER_COOKIE_NAME)
        if new_visitor or VISITOR_COOKIE_NAME in cookies:
            self._set_cookie(response, VISITOR_COOKIE_NAME)
        return response

    @staticmethod
    def _register(request: Request) -> None:
        db = _resolve(request, get_session_factory)()
        try:
            register_visitor(db)
        except Exception as exc:
            db.rollback()
            logger.error("Could not register a visitor: %s", exc)
        finally:
            db.close()

    @staticmethod
    def _set_cookie(response: Response, name: str) -> None:
        response.set_cookie(
            name,
            "1",
            max_age=settings.visitor_cookie_max_age_days * 24 * 60 * 60,
            httponly=True,
            secure=True,
            samesite="none",
        )
