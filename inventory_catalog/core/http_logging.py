from __future__ import annotations

import logging
import re
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

REQUEST_ID_HEADER = "X-Request-ID"
PERSISTENCE_FAILURE_DETAIL = "Operação falhou, tente novamente"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_LOG = logging.getLogger("inventory_catalog.http")


def _request_id_from_header(raw: str | None) -> str:
    """Reuse a well-formed client request id, otherwise mint one."""
    value = str(raw or "").strip()
    return value if _REQUEST_ID_RE.fullmatch(value) else uuid4().hex


def install_http_logging(app: FastAPI) -> None:
    @app.exception_handler(SQLAlchemyError)
    async def _persistence_failure(request: Request, exc: SQLAlchemyError):
        request_id = getattr(request.state, "request_id", "-")
        _LOG.error(
            "persistence failure %s %s request_id=%s: %s",
            request.method,
            request.url.path,
            request_id,
            exc.__class__.__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=503,
            content={"detail": PERSISTENCE_FAILURE_DETAIL},
            headers={REQUEST_ID_HEADER: request_id},
        )

    @app.middleware("http")
    async def _http_logging_middleware(request: Request, call_next):
        request_id = _request_id_from_header(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        started_at = perf_counter()

        response = await call_next(request)

        response.headers["Cache-Control"] = "no-store"
        response.headers[REQUEST_ID_HEADER] = request_id

        duration_ms = (perf_counter() - started_at) * 1000.0
        _LOG.info(
            "%s %s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response
