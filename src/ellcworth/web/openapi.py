from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Ellcworth Shipments API",
            version="0.1.0",
            summary="Shipment booking, reference allocation and lifecycle tracking",
            routes=app.routes,
        )

        # Public endpoints are reachable without the portal's bearer token
        public_endpoints = {
            ("POST", "/api/v1/shipments/public-request"),
            ("GET", "/api/v1/shipments/track/{reference_id}"),
        }
        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["x-public"] = True

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class FieldErrorResponse(BaseModel):
    field: str = Field(..., description="Dotted path of the rejected field")
    reason: str = Field(..., description="Why the field was rejected")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Shipment not found: ELX-RORO-250115-0001", "type": "not_found"},
                {"message": "Shipment 0a1b... kept changing; re-fetch and retry", "type": "concurrent_modification"},
            ]
        }
    }


class ValidationErrorResponse(ErrorResponse):
    """Rejected input, listing every offending field."""

    errors: list[FieldErrorResponse] = Field(..., description="All rejected fields")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "message": "owner_ref: required for status 'pending'",
                    "type": "validation_error",
                    "errors": [{"field": "owner_ref", "reason": "required for status 'pending'"}],
                }
            ]
        }
    }


class TransitionErrorResponse(ErrorResponse):
    """Requested status does not follow the current one."""

    from_status: str = Field(..., description="Status the shipment is in")
    to_status: str = Field(..., description="Status that was requested")
