"""Error envelope and exception handlers for the automation studio API."""

from __future__ import annotations

import logging
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger("automation_studio")

_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "validation_error",
}


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    detail: str
    error_code: str
    request_id: str | None = None


def error_code_for(status_code: int) -> str:
    return _ERROR_CODES.get(status_code, "http_error")


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Wrap HTTP, request-validation and unexpected errors in :class:`ErrorResponse`."""

    @app.exception_handler(HTTPException)
    async def _handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        detail = exc.detail if exc.detail else "HTTP error"
        if not isinstance(detail, str):
            detail = str(detail)
        error = ErrorResponse(detail=detail, error_code=error_code_for(exc.status_code), request_id=request_id)
        logger.warning("HTTPException: %s", error.model_dump(), extra={"request_id": request_id})
        return JSONResponse(status_code=exc.status_code, content=error.model_dump())

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        error = ErrorResponse(detail=_describe_validation_errors(exc), error_code="validation_error", request_id=request_id)
        logger.warning("Request validation failed: %s", error.detail, extra={"request_id": request_id})
        return JSONResponse(status_code=422, content=error.model_dump())

    @app.exception_handler(Exception)
    async def _handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        error = ErrorResponse(detail="Internal server error", error_code="internal_error", request_id=request_id)
        logger.exception("Unhandled exception", extra={"request_id": request_id})
        return JSONResponse(status_code=500, content=error.model_dump())


def get_request_id(request: Request) -> str:
    """Return the request's correlation id, assigning one if missing."""

    if getattr(request.state, "request_id", None):
        return request.state.request_id
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    return request_id


__all__ = ["ErrorResponse", "register_exception_handlers", "get_request_id", "error_code_for"]
