"""Metadata endpoints for exposing the shipment lifecycle."""

from fastapi import APIRouter

from ellcworth.web.deps import AppDep

router = APIRouter(tags=["metadata"])


@router.get(
    "/metadata/statuses",
    summary="Get shipment lifecycle",
    description=(
        "Returns every shipment status with its family, the statuses that may follow it "
        "and the fields it requires. Used by the admin panel to offer only legal status changes."
    ),
    operation_id="getStatuses",
    responses={200: {"description": "Lifecycle table in lifecycle order"}},
)
async def get_statuses(app: AppDep) -> list[dict[str, object]]:
    return app.get_lifecycle()
