"""Which statuses may follow which, and what each status demands of a shipment.

Pure lookups over fixed tables; nothing here touches the database.
"""

from ellcworth.core.modules.lifecycle.models import LEAD_STATUSES, TERMINAL_STATUSES, ShipmentStatus
from ellcworth.errors import ValidationError

S = ShipmentStatus

TRANSITIONS: dict[ShipmentStatus, frozenset[ShipmentStatus]] = {
    # Lead family
    S.REQUEST_RECEIVED: frozenset({S.UNDER_REVIEW}),
    S.UNDER_REVIEW: frozenset({S.QUOTED}),
    S.QUOTED: frozenset({S.CUSTOMER_REQUESTED_CHANGES, S.CUSTOMER_APPROVED}),
    S.CUSTOMER_REQUESTED_CHANGES: frozenset({S.QUOTED}),  # Revisions are unbounded
    S.CUSTOMER_APPROVED: frozenset({S.PENDING}),  # Only bridge into operations
    # Operational family
    S.PENDING: frozenset({S.BOOKED, S.CANCELLED}),
    S.BOOKED: frozenset({S.AT_ORIGIN_YARD, S.CANCELLED}),
    S.AT_ORIGIN_YARD: frozenset({S.LOADED, S.CANCELLED}),
    S.LOADED: frozenset({S.SAILED, S.CANCELLED}),
    S.SAILED: frozenset({S.ARRIVED, S.CANCELLED}),
    S.ARRIVED: frozenset({S.CLEARED, S.CANCELLED}),
    S.CLEARED: frozenset({S.DELIVERED, S.CANCELLED}),
    S.DELIVERED: frozenset(),
    S.CANCELLED: frozenset(),
}

_ENQUIRY_FIELDS: tuple[str, ...] = ("shipper.name",)

_QUOTE_FIELDS: tuple[str, ...] = (
    "shipper.name",
    "shipper.email",
    "transport_mode",
    "ports.origin_port",
    "ports.destination_port",
)

_BOOKING_FIELDS: tuple[str, ...] = (
    "transport_mode",
    "shipper.name",
    "shipper.address",
    "shipper.email",
    "consignee.name",
    "consignee.address",
    "ports.origin_port",
    "ports.destination_port",
)

REQUIRED_FIELDS: dict[ShipmentStatus, tuple[str, ...]] = {
    S.REQUEST_RECEIVED: _ENQUIRY_FIELDS,
    S.UNDER_REVIEW: _ENQUIRY_FIELDS,
    S.QUOTED: _QUOTE_FIELDS,
    S.CUSTOMER_REQUESTED_CHANGES: _QUOTE_FIELDS,
    S.CUSTOMER_APPROVED: _QUOTE_FIELDS,
    **{status: _BOOKING_FIELDS for status in ShipmentStatus if status not in LEAD_STATUSES},
}


def parse_status(status: ShipmentStatus | str) -> ShipmentStatus:
    """Coerce a raw status string, rejecting anything outside the lifecycle."""
    try:
        return ShipmentStatus(status)
    except ValueError:
        raise ValidationError.for_field("status", f"unknown status '{status}'") from None


def is_lead(status: ShipmentStatus | str) -> bool:
    return parse_status(status) in LEAD_STATUSES


def is_terminal(status: ShipmentStatus | str) -> bool:
    return parse_status(status) in TERMINAL_STATUSES


def required_owner_ref(status: ShipmentStatus | str) -> bool:
    """Whether a shipment in this status must belong to a customer account."""
    return not is_lead(status)


def allowed_next_statuses(status: ShipmentStatus | str) -> frozenset[ShipmentStatus]:
    return TRANSITIONS[parse_status(status)]


def allowed_previous_statuses(status: ShipmentStatus | str) -> frozenset[ShipmentStatus]:
    target = parse_status(status)
    return frozenset(source for source, targets in TRANSITIONS.items() if target in targets)


def can_transition(current: ShipmentStatus | str, requested: ShipmentStatus | str) -> bool:
    return parse_status(requested) in allowed_next_statuses(current)


def required_fields(status: ShipmentStatus | str) -> tuple[str, ...]:
    """Dotted field paths that must be present and non-blank in this status, in check order."""
    return REQUIRED_FIELDS[parse_status(status)]
