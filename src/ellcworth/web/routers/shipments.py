from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ellcworth.core.modules.lifecycle.models import ShipmentStatus
from ellcworth.core.modules.shipment.models import Shipment, ShipmentDraft, ShipmentPatch
from ellcworth.core.modules.shipment.query import ShipmentFilters
from ellcworth.core.pagination import PaginationResult
from ellcworth.web.deps import AppDep
from ellcworth.web.openapi import ErrorResponse, TransitionErrorResponse, ValidationErrorResponse

router: APIRouter = APIRouter(tags=["shipments"])


class CreateShipmentRequest(ShipmentDraft):
    """Request to create a shipment.

    Without `status`, a shipment with no `owner_ref` starts as `request_received`
    and one with an owner starts as `pending`.
    """

    created_by: UUID | None = Field(None, description="Account that keyed in the booking")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "transport_mode": "RoRo",
                    "status": "request_received",
                    "shipper": {"name": "A. Mensah", "email": "a.mensah@example.com"},
                    "ports": {"origin_port": "Tilbury", "destination_port": "Tema"},
                }
            ]
        }
    }


class TransitionRequest(BaseModel):
    """Request to move a shipment to its next status."""

    status: ShipmentStatus = Field(..., description="Requested status; must directly follow the current one")
    patch: ShipmentPatch | None = Field(None, description="Fields to merge before validating the new status")
    event: str | None = Field(None, description="Tracking note; defaults to 'Status updated to ...'")
    location: str | None = Field(None, description="Where the status change happened")
    updated_by: UUID | None = Field(None, description="Account making the change")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"status": "booked", "event": "Space confirmed with carrier", "location": "Tilbury"},
                {"status": "pending", "patch": {"owner_ref": "5b2f7c1e-9a43-4b8e-a0d2-6f1e3c4d5a6b"}},
            ]
        }
    }


@router.post(
    "/shipments",
    summary="Create shipment",
    description="Validate a booking or quote request for its initial status and assign its reference.",
    operation_id="createShipment",
    status_code=201,
    responses={
        201: {"description": "Shipment created with its allocated reference"},
        422: {"model": ValidationErrorResponse, "description": "Missing or malformed fields"},
        503: {"model": ErrorResponse, "description": "Document store unavailable"},
    },
)
async def create_shipment(request: CreateShipmentRequest, app: AppDep) -> Shipment:
    draft = ShipmentDraft.model_validate(request.model_dump(exclude={"created_by"}))
    return await app.create_shipment(draft, request.created_by)


@router.post(
    "/shipments/public-request",
    summary="Request a quote",
    description="Anonymous quote request from the public website. Always starts as `request_received`.",
    operation_id="createPublicRequest",
    status_code=201,
    responses={
        201: {"description": "Quote request stored"},
        422: {"model": ValidationErrorResponse, "description": "Missing or malformed fields"},
        503: {"model": ErrorResponse, "description": "Document store unavailable"},
    },
)
async def create_public_request(request: ShipmentDraft, app: AppDep) -> Shipment:
    return await app.create_public_request(request)


@router.get(
    "/shipments",
    summary="List shipments",
    description="Paginated shipments, newest first, with optional filters.",
    operation_id="listShipments",
    responses={200: {"description": "Paginated list of shipments"}},
)
async def list_shipments(
    app: AppDep,
    filters: Annotated[ShipmentFilters, Query()],
    limit: Annotated[int, Query(ge=1, le=500, description="Maximum items to return")] = 200,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Shipment]:
    return await app.list_shipments(filters, limit, offset)


@router.get(
    "/shipments/track/{reference_id}",
    summary="Track shipment",
    description="Public lookup by reference, ignoring case.",
    operation_id="trackShipment",
    responses={
        200: {"description": "Shipment details"},
        404: {"model": ErrorResponse, "description": "Shipment not found"},
    },
)
async def track_shipment(reference_id: str, app: AppDep) -> Shipment:
    return await app.track_shipment(reference_id)


@router.get(
    "/shipments/{shipment_id}",
    summary="Get shipment",
    operation_id="getShipment",
    responses={
        200: {"description": "Shipment details"},
        404: {"model": ErrorResponse, "description": "Shipment not found"},
    },
)
async def get_shipment(shipment_id: UUID, app: AppDep) -> Shipment:
    return await app.get_shipment(shipment_id)


@router.patch(
    "/shipments/{shipment_id}/status",
    summary="Update shipment status",
    description=(
        "Move a shipment to the next status in its lifecycle, merging an optional patch first. "
        "The reference can never be changed."
    ),
    operation_id="updateShipmentStatus",
    responses={
        200: {"description": "Shipment updated"},
        404: {"model": ErrorResponse, "description": "Shipment not found"},
        409: {"model": TransitionErrorResponse, "description": "Illegal transition or concurrent modification"},
        422: {"model": ValidationErrorResponse, "description": "Fields missing for the requested status"},
    },
)
async def update_shipment_status(shipment_id: UUID, request: TransitionRequest, app: AppDep) -> Shipment:
    return await app.transition_shipment(
        shipment_id,
        request.status,
        request.patch,
        event=request.event,
        location=request.location,
        updated_by=request.updated_by,
    )


@router.patch(
    "/shipments/{shipment_id}",
    summary="Update shipment details",
    description="Partially update shipment fields; the result must still satisfy the current status.",
    operation_id="updateShipment",
    responses={
        200: {"description": "Shipment updated"},
        404: {"model": ErrorResponse, "description": "Shipment not found"},
        409: {"model": ErrorResponse, "description": "Concurrent modification"},
        422: {"model": ValidationErrorResponse, "description": "Missing or malformed fields"},
    },
)
async def update_shipment(shipment_id: UUID, request: ShipmentPatch, app: AppDep) -> Shipment:
    return await app.update_shipment(shipment_id, request)
