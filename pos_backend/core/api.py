# core/api.py

"""
API ERROR NORMALIZATION

Canonical error envelope shared by every app:

    {"error": {"code": "...", "message": "...", "context": {...}}}

"retryable": true is added for transient failures (lock contention).
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response

from core.exceptions import (
    AlreadySettledError,
    DuplicateDebtError,
    EngineError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    StockContentionError,
)

# Anything not listed is a 400 business-rule violation.
_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (DuplicateDebtError, status.HTTP_409_CONFLICT),
    (AlreadySettledError, status.HTTP_409_CONFLICT),
    (StockContentionError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def error_response(
    *, code: str, message: str, http_status: int, context=None, retryable: bool = False
):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if context:
        body["context"] = context
    if retryable:
        body["retryable"] = True
    return Response({"error": body}, status=http_status)


def http_status_for(exc: EngineError) -> int:
    for error_class, http_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def engine_error_response(exc: EngineError):
    return error_response(
        code=exc.code,
        message=exc.message or str(exc),
        http_status=http_status_for(exc),
        context=exc.context,
        retryable=exc.retryable,
    )
