import re
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from ellcworth.core.modules.lifecycle.models import ShipmentStatus
from ellcworth.core.modules.reference.models import TransportMode

SEARCH_FIELDS = (
    "reference_id",
    "shipper.name",
    "consignee.name",
    "ports.origin_port",
    "ports.destination_port",
    "cargo.description",
)


class ShipmentFilters(BaseModel):
    """List filters used by the admin table and the customer portal."""

    owner_ref: UUID | None = Field(None, description="Only shipments owned by this customer")
    status: ShipmentStatus | None = None
    transport_mode: TransportMode | None = None
    origin_port: str | None = None
    destination_port: str | None = None
    from_date: datetime | None = Field(None, description="Shipping date lower bound (inclusive)")
    to_date: datetime | None = Field(None, description="Shipping date upper bound (inclusive)")
    search: str | None = Field(None, description="Case-insensitive text matched against reference, parties, ports, cargo")


def build_shipment_query(filters: ShipmentFilters) -> dict[str, Any]:
    """Build a MongoDB query from list filters. Soft-deleted shipments never match."""
    query: dict[str, Any] = {"is_deleted": False}

    if filters.owner_ref is not None:
        query["owner_ref"] = filters.owner_ref
    if filters.status is not None:
        query["status"] = filters.status
    if filters.transport_mode is not None:
        query["transport_mode"] = filters.transport_mode
    if filters.origin_port:
        query["ports.origin_port"] = filters.origin_port
    if filters.destination_port:
        query["ports.destination_port"] = filters.destination_port

    if filters.from_date or filters.to_date:
        date_range: dict[str, datetime] = {}
        if filters.from_date:
            date_range["$gte"] = filters.from_date
        if filters.to_date:
            date_range["$lte"] = filters.to_date
        query["shipping_date"] = date_range

    if filters.search and filters.search.strip():
        # User text is matched literally, never as a pattern
        pattern = re.escape(filters.search.strip())
        query["$or"] = [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]

    return query
