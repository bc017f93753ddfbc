"""Request logging middleware for the distribution API.

Each request gets a request id (taken from ``X-Request-ID`` or generated),
bound to the logging context for the duration of the request and echoed on
the response together with ``X-Process-Time-Ms``.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)
"""
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.config import get_settings
from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

QUIET_PATHS = frozenset({"/health", "/docs", "/openapi.json"})


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request context to log records and log one line per request."""

    def __init__(self, app, slow_request_ms: int):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        started = time.perf_counter()
        quiet = request.url.path in QUIET_PATHS

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s failed after %sms",
                request.method,
                request.url.path,
                _elapsed_ms(started),
            )
            raise
        else:
            duration_ms = _elapsed_ms(started)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time-Ms"] = str(duration_ms)
            if not quiet:
                self._log_completed(request, response.status_code, duration_ms)
            return response
        finally:
            clear_request_context()

    def _log_completed(self, request: Request, status_code: int, duration_ms: float) -> None:
        fields = {"status_code": status_code, "duration_ms": duration_ms}
        if request.url.query:
            fields["query"] = str(request.url.query)

        if status_code >= 500:
            log = logger.error
        elif status_code >= 400 or duration_ms >= self.slow_request_ms:
            log = logger.warning
        else:
            log = logger.info
        log(
            "%s %s -> %d in %sms",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            extra={"extra_fields": fields},
        )


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install the request context middleware on ``app``."""
    configure_logging()
    app.add_middleware(
        RequestContextMiddleware,
        slow_request_ms=get_settings().SLOW_REQUEST_MS,
    )
