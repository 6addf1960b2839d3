from __future__ import annotations

from http import HTTPStatus
from typing import Any, Dict

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sheetsplus.core.exceptions import (
    EmptyGridError,
    ExtractionError,
    OutOfRangeError,
    SessionNotFoundError,
)

__all__: list[str] = ["add_exception_handlers"]

logger = structlog.get_logger("errors")


def _build_error_payload(
    code: str | int,
    message: str,
    request_id: str | None = None,
    extra: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """Return a JSON-serialisable error envelope.

    Parameters
    ----------
    code:
        A machine-readable error code (snake_case) or HTTP status integer.
    message:
        Human-readable description (English, sentence-cased).
    request_id:
        Optional correlation ID injected by `RequestLoggingMiddleware`.
    extra:
        Optional additional payload for debugging (e.g. validation details).
    """

    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "request_id": request_id,
        }
    }
    if extra:
        payload["error"].update(extra)
    return payload


def _domain_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    extra: Dict[str, Any] | None = None,
) -> JSONResponse:
    payload = _build_error_payload(
        code=code,
        message=message,
        request_id=request.headers.get("x-request-id"),
        extra=extra,
    )
    payload["detail"] = message
    return JSONResponse(status_code=status_code, content=payload)


async def _http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle exceptions explicitly raised by the application/routers."""

    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=str(exc.detail),
    )

    payload = _build_error_payload(
        code=exc.status_code,
        message=str(exc.detail),
        request_id=request.headers.get("x-request-id"),
    )
    # Keep FastAPI's default ``detail`` key for clients that rely on it.
    payload["detail"] = str(exc.detail)

    return JSONResponse(status_code=exc.status_code, content=payload)


async def _validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle body/query/path parameter validation failures (422)."""

    logger.warning(
        "validation_error",
        path=request.url.path,
        errors=exc.errors(),
    )

    payload = _build_error_payload(
        code="validation_error",
        message="Invalid request parameters.",
        request_id=request.headers.get("x-request-id"),
        extra={"details": exc.errors()},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload
    )


async def _out_of_range_handler(
    request: Request,
    exc: OutOfRangeError,
) -> JSONResponse:
    """A grid operation addressed a row/column that does not exist (422)."""

    logger.info(
        "grid_index_out_of_range",
        path=request.url.path,
        axis=exc.axis,
        index=exc.index,
        size=exc.size,
    )
    return _domain_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "out_of_range",
        str(exc),
        extra={"axis": exc.axis, "index": exc.index, "size": exc.size},
    )


async def _session_not_found_handler(
    request: Request,
    exc: SessionNotFoundError,
) -> JSONResponse:
    logger.info("session_not_found", session_id=exc.session_id)
    return _domain_response(
        request, status.HTTP_404_NOT_FOUND, "session_not_found", str(exc)
    )


async def _empty_grid_handler(
    request: Request,
    exc: EmptyGridError,
) -> JSONResponse:
    logger.info("export_empty_grid", path=request.url.path)
    return _domain_response(request, status.HTTP_409_CONFLICT, "empty_grid", str(exc))


async def _extraction_error_handler(
    request: Request,
    exc: ExtractionError,
) -> JSONResponse:
    """The extraction backend failed – surfaced as a bad gateway (502)."""

    logger.warning("extraction_failed", path=request.url.path, error=str(exc))
    return _domain_response(
        request, status.HTTP_502_BAD_GATEWAY, "extraction_failed", str(exc)
    )


async def _unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:  # noqa: D401 – FastAPI handler sig
    """Catch-all for unexpected errors – returns HTTP 500."""

    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
    )

    payload = _build_error_payload(
        code="internal_server_error",
        message="An unexpected error occurred.",
        request_id=request.headers.get("x-request-id"),
    )
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,  # 500
        content=payload,
    )


def add_exception_handlers(app: FastAPI) -> None:  # noqa: D401 – imperative
    """Register all global exception handlers on **app**."""

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(OutOfRangeError, _out_of_range_handler)
    app.add_exception_handler(SessionNotFoundError, _session_not_found_handler)
    app.add_exception_handler(EmptyGridError, _empty_grid_handler)
    app.add_exception_handler(ExtractionError, _extraction_error_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
