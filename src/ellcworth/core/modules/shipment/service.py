from datetime import date
from typing import Any
from uuid import UUID

import pydantic
import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from ellcworth.core.core import Service
from ellcworth.core.db import store_errors
from ellcworth.core.modules.lifecycle.models import ShipmentStatus
from ellcworth.core.modules.lifecycle.policy import can_transition, is_terminal, parse_status
from ellcworth.core.modules.reference.formatter import counter_key, format_reference
from ellcworth.core.modules.reference.models import TransportMode
from ellcworth.core.modules.shipment.models import Channel, Shipment, ShipmentDraft, ShipmentPatch, TrackingEvent
from ellcworth.core.modules.shipment.query import ShipmentFilters, build_shipment_query
from ellcworth.core.modules.shipment.validators import validate_for_status
from ellcworth.core.pagination import PaginationResult
from ellcworth.errors import (
    ConcurrentModificationError,
    IllegalTransitionError,
    NotFoundError,
    ReferenceCollisionError,
    ValidationError,
)
from ellcworth.utils import now, today_in

logger = structlog.get_logger(__name__)

# Fields a write never takes from the merged document
_UNWRITABLE = ("_id", "reference_id", "created_at", "created_by", "tracking_events", "version", "is_deleted")


def normalize_reference(value: str | None) -> str | None:
    """Trim and upper-case a reference; blank means "not supplied"."""
    if value is None or not value.strip():
        return None
    return value.strip().upper()


def merge_changes(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge a partial update; nested dicts merge key by key, everything else replaces."""
    merged = dict(current)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_changes(merged[key], value)
        else:
            merged[key] = value
    return merged


class ShipmentService(Service):
    """Creates shipments with allocated references and moves them through their lifecycle."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("shipments")

    async def on_start(self) -> None:
        """Create indexes for reference lookup, customer listings and the admin table."""
        await self._collection.create_index([("reference_id", 1)], unique=True)
        await self._collection.create_index([("owner_ref", 1), ("created_at", -1)])
        await self._collection.create_index(
            [("status", 1), ("transport_mode", 1), ("ports.origin_port", 1), ("ports.destination_port", 1)]
        )
        await self._collection.create_index([("cargo.vehicle.vin", 1)], sparse=True)

    def reference_day(self) -> date:
        """Calendar day stamped into references allocated right now."""
        return today_in(self.core.config.reference_timezone)

    async def allocate_reference(self, mode: TransportMode | None) -> str:
        """Draw the next sequence for mode and today, and render it as a reference."""
        day = self.reference_day()
        seq = await self.core.services.counter.allocate(counter_key(mode, day))
        return format_reference(mode, day, seq, prefix=self.core.config.reference_prefix)

    async def get_shipment(self, shipment_id: UUID) -> Shipment:
        """Get shipment by ID."""
        with store_errors("shipment read"):
            doc = await self._collection.find_one({"_id": shipment_id, "is_deleted": False})
        if not doc:
            raise NotFoundError(f"Shipment not found: {shipment_id}")
        return Shipment.model_validate(doc)

    async def get_by_reference(self, reference_id: str) -> Shipment:
        """Get shipment by its business reference, ignoring case."""
        reference = normalize_reference(reference_id)
        if reference is None:
            raise ValidationError.for_field("reference_id", "must not be empty")
        with store_errors("shipment read"):
            doc = await self._collection.find_one({"reference_id": reference, "is_deleted": False})
        if not doc:
            raise NotFoundError(f"Shipment not found: {reference}")
        return Shipment.model_validate(doc)

    async def list_shipments(
        self, filters: ShipmentFilters | None = None, limit: int = 200, offset: int = 0
    ) -> PaginationResult[Shipment]:
        """Get paginated shipments, newest first."""
        query = build_shipment_query(filters or ShipmentFilters())
        with store_errors("shipment list"):
            total = await self._collection.count_documents(query)
            cursor = self._collection.find(query).sort("created_at", -1).skip(offset).limit(limit)
            items = await Shipment.list_cursor(cursor)

        logger.debug("list_shipments", query=query, total=total, limit=limit, offset=offset, returned=len(items))
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def create_shipment(self, draft: ShipmentDraft, created_by: UUID | None = None) -> Shipment:
        """Validate a draft, stamp its reference and store it.

        Nothing is written, and no sequence is drawn, when validation fails.

        Args:
            draft: The creation request
            created_by: Account that keyed in the booking, if known

        Returns:
            The stored shipment as read back from the database

        Raises:
            ValidationError: Missing or malformed fields, terminal status, or a
                supplied reference that is already in use
            StoreUnavailableError: The store could not be reached
            ReferenceCollisionError: A generated reference collided twice
        """
        status = self._initial_status(draft)
        data = draft.model_dump(exclude={"status", "reference_id", "channel"})
        validate_for_status(data, status)

        opening_event = TrackingEvent(
            status=status,
            event="Shipment request received" if status == ShipmentStatus.REQUEST_RECEIVED else "Shipment created",
            meta={"source": draft.channel, "created_by": str(created_by) if created_by else None},
        )

        def build(reference: str) -> Shipment:
            return Shipment.model_validate(
                {
                    **data,
                    "reference_id": reference,
                    "status": status,
                    "created_by": created_by,
                    "channel": draft.channel,
                    "tracking_events": [opening_event],
                }
            )

        supplied = normalize_reference(draft.reference_id)
        if supplied is not None:
            shipment = build(supplied)
            try:
                await self._insert(shipment)
            except DuplicateKeyError:
                raise ValidationError.for_field("reference_id", f"'{supplied}' is already in use") from None
            logger.info("shipment_created", reference_id=supplied, status=status, supplied_reference=True)
            return await self.get_shipment(shipment.id)

        # A generated reference should never collide; one fresh draw is allowed if it does
        for attempt in (1, 2):
            reference = await self.allocate_reference(draft.transport_mode)
            shipment = build(reference)
            try:
                await self._insert(shipment)
            except DuplicateKeyError:
                logger.error("reference_collision", reference_id=reference, attempt=attempt)
                continue
            logger.info("shipment_created", reference_id=reference, status=status, channel=draft.channel)
            return await self.get_shipment(shipment.id)

        raise ReferenceCollisionError(f"Allocated reference collided twice for mode {draft.transport_mode}")

    async def create_lead(self, draft: ShipmentDraft) -> Shipment:
        """Store an anonymous quote request from the public website.

        Owner, reference and status are never taken from an anonymous caller.
        """
        lead = draft.model_copy(
            update={
                "status": ShipmentStatus.REQUEST_RECEIVED,
                "owner_ref": None,
                "reference_id": None,
                "channel": Channel.WEB_PORTAL,
            }
        )
        return await self.create_shipment(lead)

    async def transition_shipment(
        self,
        shipment_id: UUID,
        status: ShipmentStatus | str,
        patch: ShipmentPatch | None = None,
        event: str | None = None,
        location: str | None = None,
        updated_by: UUID | None = None,
    ) -> Shipment:
        """Move a shipment to `status`, merging `patch` first.

        The current record is re-read on every attempt. If another writer
        changes the shipment between validation and write, validation runs
        again against the new state, up to `transition_attempts` times.

        Raises:
            NotFoundError: No such shipment
            IllegalTransitionError: `status` does not follow the current status
            ValidationError: The patch changes the reference (whatever else it
                holds), or the merged shipment lacks what `status` requires
            ConcurrentModificationError: Lost the race on every attempt
        """
        requested = parse_status(status)
        attempts = max(1, self.core.config.transition_attempts)

        for attempt in range(1, attempts + 1):
            current = await self.get_shipment(shipment_id)
            if not can_transition(current.status, requested):
                raise IllegalTransitionError(current.status, requested)
            changes = self._patch_changes(current, patch)

            updated = self._merge(current, changes)
            validate_for_status(updated.model_dump(), requested)

            tracking = TrackingEvent(
                status=requested,
                event=event or f'Status updated to "{requested.replace("_", " ")}"',
                location=location or "",
                meta={"from_status": current.status, "updated_by": str(updated_by) if updated_by else None},
            )
            if await self._write_if_unchanged(current, updated, requested, tracking):
                logger.info(
                    "shipment_transitioned",
                    reference_id=current.reference_id,
                    from_status=current.status,
                    to_status=requested,
                    attempt=attempt,
                )
                return await self.get_shipment(shipment_id)

            logger.warning(
                "shipment_transition_conflict", reference_id=current.reference_id, to_status=requested, attempt=attempt
            )

        raise ConcurrentModificationError(f"Shipment {shipment_id} kept changing; re-fetch and retry")

    async def update_shipment(self, shipment_id: UUID, patch: ShipmentPatch) -> Shipment:
        """Edit shipment details without changing status.

        The merged shipment must still satisfy its current status.
        """
        attempts = max(1, self.core.config.transition_attempts)

        for attempt in range(1, attempts + 1):
            current = await self.get_shipment(shipment_id)
            changes = self._patch_changes(current, patch)
            updated = self._merge(current, changes)
            validate_for_status(updated.model_dump(), current.status)

            if await self._write_if_unchanged(current, updated, current.status, None):
                logger.info("shipment_updated", reference_id=current.reference_id, fields=sorted(changes))
                return await self.get_shipment(shipment_id)

            logger.warning("shipment_update_conflict", reference_id=current.reference_id, attempt=attempt)

        raise ConcurrentModificationError(f"Shipment {shipment_id} kept changing; re-fetch and retry")

    def _initial_status(self, draft: ShipmentDraft) -> ShipmentStatus:
        if draft.status is None:
            # No owner means an anonymous quote request
            return ShipmentStatus.REQUEST_RECEIVED if draft.owner_ref is None else ShipmentStatus.PENDING
        if is_terminal(draft.status):
            raise ValidationError.for_field("status", f"cannot create a shipment as '{draft.status}'")
        return draft.status

    def _patch_changes(self, current: Shipment, patch: ShipmentPatch | None) -> dict[str, Any]:
        """Fields to merge, with the reference checked against the stored one."""
        if patch is None:
            return {}
        changes = patch.changes()
        if "reference_id" in changes:
            # Null or blank means "not supplied", as at creation
            requested_reference = normalize_reference(changes.pop("reference_id"))
            if requested_reference is not None and requested_reference != current.reference_id:
                raise ValidationError.for_field("reference_id", "reference is immutable once assigned")
        return changes

    def _merge(self, current: Shipment, changes: dict[str, Any]) -> Shipment:
        if not changes:
            return current
        try:
            return Shipment.model_validate(merge_changes(current.model_dump(), changes))
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e) from None

    async def _insert(self, shipment: Shipment) -> None:
        with store_errors("shipment insert"):
            await self._collection.insert_one(shipment.to_mongo())

    async def _write_if_unchanged(
        self, current: Shipment, updated: Shipment, status: ShipmentStatus, tracking: TrackingEvent | None
    ) -> bool:
        """Replace content only if nobody wrote since `current` was read."""
        fields = {k: v for k, v in updated.to_mongo().items() if k not in _UNWRITABLE}
        fields["status"] = status
        fields["updated_at"] = now()

        update: dict[str, Any] = {"$set": fields, "$inc": {"version": 1}}
        if tracking is not None:
            update["$push"] = {"tracking_events": tracking.model_dump()}

        with store_errors("shipment update"):
            result = await self._collection.update_one(
                {"_id": current.id, "status": current.status, "version": current.version, "is_deleted": False},
                update,
            )
        return result.matched_count == 1
