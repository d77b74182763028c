from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from ellcworth.config import Config
from ellcworth.core.core import Core
from ellcworth.core.modules.lifecycle.models import LEAD_STATUSES, TERMINAL_STATUSES, ShipmentStatus
from ellcworth.core.modules.lifecycle.policy import allowed_next_statuses, required_fields, required_owner_ref
from ellcworth.core.modules.shipment.models import Shipment, ShipmentDraft, ShipmentPatch
from ellcworth.core.modules.shipment.query import ShipmentFilters
from ellcworth.core.pagination import PaginationResult


class App:
    """Facade for all shipment operations used by the HTTP layer.

    Authentication happens upstream; callers pass the acting account id
    where it is known.
    """

    def __init__(self, config: Config, database: AsyncDatabase | None = None) -> None:
        self._core = Core(config, database)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def create_shipment(self, draft: ShipmentDraft, created_by: UUID | None = None) -> Shipment:
        """Create a booking or quote request with a freshly allocated reference."""
        return await self._core.services.shipment.create_shipment(draft, created_by)

    async def create_public_request(self, draft: ShipmentDraft) -> Shipment:
        """Create an anonymous quote request from the public website."""
        return await self._core.services.shipment.create_lead(draft)

    async def transition_shipment(
        self,
        shipment_id: UUID,
        status: ShipmentStatus,
        patch: ShipmentPatch | None = None,
        event: str | None = None,
        location: str | None = None,
        updated_by: UUID | None = None,
    ) -> Shipment:
        """Advance a shipment to a new status."""
        return await self._core.services.shipment.transition_shipment(
            shipment_id, status, patch, event=event, location=location, updated_by=updated_by
        )

    async def update_shipment(self, shipment_id: UUID, patch: ShipmentPatch) -> Shipment:
        """Edit shipment details without a status change."""
        return await self._core.services.shipment.update_shipment(shipment_id, patch)

    async def get_shipment(self, shipment_id: UUID) -> Shipment:
        return await self._core.services.shipment.get_shipment(shipment_id)

    async def track_shipment(self, reference_id: str) -> Shipment:
        """Public tracking lookup by reference."""
        return await self._core.services.shipment.get_by_reference(reference_id)

    async def list_shipments(self, filters: ShipmentFilters, limit: int, offset: int) -> PaginationResult[Shipment]:
        return await self._core.services.shipment.list_shipments(filters, limit, offset)

    def get_lifecycle(self) -> list[dict[str, object]]:
        """Lifecycle table for UIs: per status, its family, successors and requirements."""
        return [
            {
                "status": status,
                "lead": status in LEAD_STATUSES,
                "terminal": status in TERMINAL_STATUSES,
                "next": sorted(allowed_next_statuses(status), key=list(ShipmentStatus).index),
                "required_fields": list(required_fields(status)),
                "requires_owner": required_owner_ref(status),
            }
            for status in ShipmentStatus
        ]
