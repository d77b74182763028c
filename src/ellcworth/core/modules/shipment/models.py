from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ellcworth.core.db import MongoModel
from ellcworth.core.modules.lifecycle.models import ShipmentStatus
from ellcworth.core.modules.reference.formatter import parse_transport_mode
from ellcworth.core.modules.reference.models import TransportMode
from ellcworth.utils import now


class ShipmentType(StrEnum):
    EXPORT = "export"
    IMPORT = "import"
    CROSS_TRADE = "cross_trade"


class ServiceLevel(StrEnum):
    DOOR_TO_PORT = "door_to_port"
    PORT_TO_PORT = "port_to_port"
    DOOR_TO_DOOR = "door_to_door"
    PORT_TO_DOOR = "port_to_door"


class Channel(StrEnum):
    """Where a booking was keyed in."""

    WEB_PORTAL = "web_portal"
    ADMIN_PANEL = "admin_panel"
    API = "api"


class Party(BaseModel):
    """Shipper, consignee or notify party."""

    name: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None


class Ports(BaseModel):
    origin_port: str | None = None
    destination_port: str | None = None


class Vehicle(BaseModel):
    make: str | None = None
    model: str | None = None
    year: str | None = None
    vin: str | None = None
    registration_no: str | None = None


class Container(BaseModel):
    container_no: str | None = None
    size: str | None = None  # e.g. "20GP", "40HC"
    seal_no: str | None = None


class Cargo(BaseModel):
    description: str | None = None
    hs_code: str | None = None
    weight: str | None = None  # Free text such as "1300 kg"
    volume_cbm: float | None = None
    package_count: int | None = None
    vehicle: Vehicle | None = None  # RoRo
    container: Container | None = None  # FCL / LCL


class TrackingEvent(BaseModel):
    """Audit entry appended whenever a shipment is created or changes status."""

    status: str = "update"
    event: str
    location: str = ""
    date: datetime = Field(default_factory=now)
    meta: dict[str, Any] = Field(default_factory=dict)


class ShipmentData(BaseModel):
    """Editable shipment content shared by drafts and stored shipments."""

    owner_ref: UUID | None = None  # Customer account; optional only while a lead
    transport_mode: TransportMode | None = None
    shipment_type: ShipmentType = ShipmentType.EXPORT
    service_level: ServiceLevel = ServiceLevel.PORT_TO_PORT
    shipper: Party = Field(default_factory=Party)
    consignee: Party = Field(default_factory=Party)
    notify: Party = Field(default_factory=Party)
    origin_address: str | None = None
    destination_address: str | None = None
    incoterm: str | None = None
    cargo: Cargo = Field(default_factory=Cargo)
    ports: Ports = Field(default_factory=Ports)
    shipping_date: datetime | None = None
    eta: datetime | None = None
    customer_notes: str | None = None
    internal_notes: str | None = None

    @field_validator("transport_mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: Any) -> TransportMode | None:
        return parse_transport_mode(value)


class Shipment(ShipmentData, MongoModel):
    """A booking or quote request across its whole life."""

    reference_id: str  # Assigned once at creation, never changes
    status: ShipmentStatus
    created_by: UUID | None = None
    channel: Channel = Channel.ADMIN_PANEL
    tracking_events: list[TrackingEvent] = Field(default_factory=list)
    is_deleted: bool = False
    version: int = 0  # Bumped on every write; guards conditional updates
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class ShipmentDraft(ShipmentData):
    """Creation request. Status defaults from the presence of an owner."""

    status: ShipmentStatus | None = None
    reference_id: str | None = None  # Only for migrating legacy bookings
    channel: Channel = Channel.ADMIN_PANEL


class PartyPatch(BaseModel):
    name: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None


class CargoPatch(BaseModel):
    description: str | None = None
    hs_code: str | None = None
    weight: str | None = None
    volume_cbm: float | None = None
    package_count: int | None = None
    vehicle: Vehicle | None = None  # Only the vehicle fields sent are merged
    container: Container | None = None


class ShipmentPatch(BaseModel):
    """Partial update; only fields explicitly set are merged.

    An explicit null on a section such as `shipper` or `ports` is rejected when
    merged, since a stored shipment always has them.
    """

    reference_id: str | None = None
    owner_ref: UUID | None = None
    transport_mode: TransportMode | None = None
    shipment_type: ShipmentType | None = None
    service_level: ServiceLevel | None = None
    shipper: PartyPatch | None = None
    consignee: PartyPatch | None = None
    notify: PartyPatch | None = None
    origin_address: str | None = None
    destination_address: str | None = None
    incoterm: str | None = None
    cargo: CargoPatch | None = None
    ports: Ports | None = None
    shipping_date: datetime | None = None
    eta: datetime | None = None
    customer_notes: str | None = None
    internal_notes: str | None = None

    @field_validator("transport_mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: Any) -> TransportMode | None:
        return parse_transport_mode(value)

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually sent, nested models trimmed the same way."""
        return self.model_dump(exclude_unset=True)
