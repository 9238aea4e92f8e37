# app/core/errors.py
"""Error kinds surfaced by the storefront core.

Every error carries a human-readable message, the HTTP status it maps to and
optional details. Routes never catch these; the handler registered by
`register_error_handlers` renders them.
"""
from __future__ import annotations
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    kind = "storefront_error"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class NotFoundError(StorefrontError):
    """A product or variant does not exist."""

    kind = "not_found"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=404, details=details)


class InsufficientStockError(StorefrontError):
    """A decrease asked for more units than the variant holds."""

    kind = "insufficient_stock"

    def __init__(self, variant_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for variant '{variant_id}': requested {requested}, available {available}",
            status_code=409,
            details={"variant_id": variant_id, "requested": requested, "available": available},
        )


class InvalidInputError(StorefrontError):
    """Malformed quantity, direction, limit or identity."""

    kind = "invalid_input"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class StorageError(StorefrontError):
    """The document store failed (unreachable, write conflict...)."""

    kind = "storage_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=503, details=details)


async def _storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "message": exc.message, "details": exc.details},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, _storefront_error_handler)
