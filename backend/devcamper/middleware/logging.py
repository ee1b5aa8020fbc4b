"""
DevCamper Backend — Access Log Middleware
===========================================

What:  One log line per request on the `devcamper.access` logger.
How:   Times the downstream call and logs method, path, status, duration,
       request ID and, for authenticated requests, the user ID.

Level by status:  5xx → ERROR, 4xx → WARNING, otherwise INFO.
/health is not logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from devcamper.middleware.request_id import request_id_var

logger = logging.getLogger("devcamper.access")

QUIET_PATHS = {"/health"}


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"
        user_id = getattr(request.state, "user_id", None) or "-"
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms user=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            user_id,
            client_ip,
            extra={
                "request_id": request_id_var.get(""),
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )
        return response
