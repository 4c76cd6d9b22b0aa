"""Custom FastAPI middlewares for observability."""
from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .monitoring import observe_request

logger = logging.getLogger("vietqr.http")

_LOG_FIELDS_KEY = "vietqr.log_fields"


def route_path(request: Request) -> str:
    route = request.scope.get("route")
    return route.path if route else request.url.path


def annotate_request(request: Request, **fields: object) -> None:
    """Attach fields (payload mode, error code) to the request completion log line."""

    request.scope.setdefault(_LOG_FIELDS_KEY, {}).update(fields)


def _annotations(request: Request) -> dict[str, object]:
    return dict(request.scope.get(_LOG_FIELDS_KEY, {}))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log request metadata, latency, status codes and request annotations."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "request failed",
                extra={
                    "method": request.method,
                    "path": route_path(request),
                    "client": request.client.host if request.client else None,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            observe_request(request.method, route_path(request), 500, duration_ms)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        level = logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING

        path = route_path(request)
        logger.log(
            level,
            "request completed",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "client": request.client.host if request.client else None,
                "duration_ms": round(duration_ms, 2),
                **_annotations(request),
            },
        )
        observe_request(request.method, path, response.status_code, duration_ms)
        return response
