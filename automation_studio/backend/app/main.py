"""FastAPI entrypoint for the automation studio backend."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from automation_studio.backend.app.api import api_router
from automation_studio.backend.app.errors import ErrorResponse, get_request_id, register_exception_handlers
from automation_studio.backend.app.logging_config import configure_logging

configure_logging()
logger = logging.getLogger("automation_studio")

app = FastAPI(title="Automation Studio Backend", version="0.1.0")


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = get_request_id(request)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled exception during request", extra={"request_id": request_id})
        error = ErrorResponse(detail="Internal server error", error_code="internal_error", request_id=request_id)
        return JSONResponse(status_code=500, content=error.model_dump(), headers={"X-Request-ID": request_id})
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "request completed | %s %s status=%s duration_ms=%.1f",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        extra={"request_id": request_id},
    )
    response.headers["X-Request-ID"] = request_id
    return response


register_exception_handlers(app)
app.include_router(api_router, prefix="/api")

__all__ = ["app"]
