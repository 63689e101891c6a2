"""Uniform ``{ok, data, error, meta}`` response bodies."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from quill.core.correlation import get_correlation_id, get_request_id
from quill.domain.content.errors import ContentLifecycleError


def response_meta(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "request_id": get_request_id() or None,
        "correlation_id": get_correlation_id() or None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if extra:
        meta.update(extra)
    return meta


def _envelope(*, ok: bool, data: Any, error: dict[str, Any] | None, status_code: int, meta: dict[str, Any] | None) -> JSONResponse:
    body = {"ok": ok, "data": data, "error": error, "meta": response_meta(meta)}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def success_envelope(
    data: Any,
    *,
    status_code: int = 200,
    meta: dict[str, Any] | None = None,
) -> JSONResponse:
    return _envelope(ok=True, data=data, error=None, status_code=status_code, meta=meta)


def list_envelope(items: Iterable[Any], *, meta: dict[str, Any] | None = None) -> JSONResponse:
    rows = list(items)
    return success_envelope({"items": rows, "total": len(rows)}, meta=meta)


def error_envelope(
    *,
    code: str,
    message: str,
    status_code: int = 400,
    details: Any = None,
    meta: dict[str, Any] | None = None,
) -> JSONResponse:
    error = {"code": code, "message": message, "details": details}
    return _envelope(ok=False, data=None, error=error, status_code=status_code, meta=meta)


def lifecycle_error_envelope(exc: ContentLifecycleError, *, path: str | None = None) -> JSONResponse:
    """Map a domain error onto its HTTP status and stable error code."""
    return error_envelope(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details or None,
        meta={"path": path} if path else None,
    )
