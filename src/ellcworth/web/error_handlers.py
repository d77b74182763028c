from typing import Any

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, Response

from ellcworth.errors import (
    ConcurrentModificationError,
    IllegalTransitionError,
    InvalidTransportModeError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str, **extra: Any) -> JSONResponse:
    """Create JSON error response with a type for machine parsing."""
    content: dict[str, Any] = {"message": message, "type": error_type, **extra}
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, ValidationError):
        errors = [{"field": e.field, "reason": e.reason} for e in exc.errors]
        return create_json_error_response(422, str(exc), "validation_error", errors=errors)
    if isinstance(exc, InvalidTransportModeError):
        errors = [{"field": "transport_mode", "reason": str(exc)}]
        return create_json_error_response(422, str(exc), "invalid_transport_mode", errors=errors)
    if isinstance(exc, IllegalTransitionError):
        return create_json_error_response(
            409, str(exc), "illegal_transition", from_status=exc.from_status, to_status=exc.to_status
        )
    if isinstance(exc, ConcurrentModificationError):
        return create_json_error_response(409, str(exc), "concurrent_modification")
    if isinstance(exc, NotFoundError):
        return create_json_error_response(404, str(exc), "not_found")
    # Default for any other UserError subclass
    return create_json_error_response(400, str(exc), "bad_request")


async def store_unavailable_handler(_: Request, exc: Exception) -> Response:
    """The store could not be reached; nothing was written, the client may retry."""
    logger.warning("store_unavailable", error=str(exc))
    return create_json_error_response(503, "Service temporarily unavailable, please retry.", "store_unavailable")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500), including reference collisions."""
    logger.exception("unexpected_error", error=str(exc), exc_info=exc)
    return create_json_error_response(500, "An unexpected error occurred.", "internal_server_error")
