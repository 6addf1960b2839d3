from __future__ import annotations

import logging
import sys
import time
import uuid
from typing import Any, Awaitable, Callable

# structlog must be imported before its typing helpers
import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from structlog.types import Processor

__all__: list[str] = [
    "bind_session_context",
    "configure_logging",
    "RequestLoggingMiddleware",
]


def _ensure_request_context(
    logger: Any,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Guarantee *request_id*, *session_id* and *path* keys exist in *event_dict*."""

    event_dict.setdefault("request_id", None)
    event_dict.setdefault("session_id", None)
    event_dict.setdefault("path", None)
    return event_dict


# The context helper sits *after* ``merge_contextvars`` so it only fills in
# missing keys.
_JSON_PROCESSORS: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    _ensure_request_context,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(),
]


def _configure_stdlib_logging(level: int) -> None:
    """Route the built-in *logging* module to *stderr*.

    Uvicorn and Starlette still log through stdlib logging; a single
    **StreamHandler** keeps their records on the same stream as structlog.
    """

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))  # structlog formats

    # Remove default handlers to avoid duplicate logs in some runtimes.
    root_logger.handlers.clear()
    root_logger.addHandler(handler)


_LOGGING_CONFIGURED: bool = False


def configure_logging(debug: bool = False) -> None:
    """Initialise `structlog` for the entire process.

    Call **exactly once** and *before* any loggers are created.  The function
    is idempotent – multiple calls are safe but no-op after the first.

    Parameters
    ----------
    debug:
        When *True* lowers the log level to ``DEBUG``; otherwise ``INFO``.
    """

    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        return

    level: int = logging.DEBUG if debug else logging.INFO

    _configure_stdlib_logging(level)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        processors=_JSON_PROCESSORS,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _LOGGING_CONFIGURED = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each HTTP request with structured details and latency.

    Inserted **first** in the middleware stack so downstream handlers inherit
    the bound `request_id`, `path` and `method` context variables.  On
    session routes the matched `session_id` path parameter is bound before
    `request_completed` is logged.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start: float = time.perf_counter()
        request_id: str = (
            request.headers.get("x-request-id") or uuid.uuid4().hex  # 32-char hex
        )

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )

        response: Response | None = None
        try:
            response = await call_next(request)
        finally:
            # The router stores matched path params on the shared scope.
            session_id = request.path_params.get("session_id")
            if session_id is not None:
                structlog.contextvars.bind_contextvars(session_id=session_id)
            duration_ms: float = (time.perf_counter() - start) * 1000
            logger = structlog.get_logger("http")
            logger.info(
                "request_completed",
                status_code=response.status_code if response is not None else 500,
                duration_ms=round(duration_ms, 2),
            )
            structlog.contextvars.clear_contextvars()

        response.headers["X-Request-ID"] = request_id
        return response


async def bind_session_context(request: Request) -> None:
    """Router dependency binding the ``session_id`` path parameter to the log context.

    Must stay ``async`` so the binding happens in the endpoint's own context.
    """
    session_id = request.path_params.get("session_id")
    if session_id is not None:
        structlog.contextvars.bind_contextvars(session_id=session_id)
