"""
RecipeBox Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request on the `recipebox.access` logger.
How:   Times the downstream app, then logs method, path, status, duration,
       request ID, client IP and, for authenticated recipe routes, the caller's
       user id.

Log levels by status class:
    5xx → ERROR    4xx → WARNING    otherwise → INFO

Never logged: request bodies (passwords), Authorization headers (tokens),
upload contents.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from recipebox.middleware.request_id import request_id_var

access_logger = logging.getLogger("recipebox.access")

# Polled by orchestrators every few seconds
QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        # Set by AccessControlMiddleware, which runs inside this one
        user_id = getattr(request.state, "user_id", None)
        client_ip = request.client.host if request.client else "-"

        access_logger.log(
            level_for_status(response.status_code),
            "%s %s -> %d in %.1fms [rid=%s user=%s ip=%s]",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id_var.get(""),
            user_id or "-",
            client_ip,
        )
        return response
