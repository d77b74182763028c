from enum import StrEnum


class ShipmentStatus(StrEnum):
    """Lifecycle states, in lifecycle order.

    The first five form the lead family (quote requests with no committed
    booking), the rest the operational family.
    """

    REQUEST_RECEIVED = "request_received"
    UNDER_REVIEW = "under_review"
    QUOTED = "quoted"
    CUSTOMER_REQUESTED_CHANGES = "customer_requested_changes"
    CUSTOMER_APPROVED = "customer_approved"
    PENDING = "pending"
    BOOKED = "booked"
    AT_ORIGIN_YARD = "at_origin_yard"
    LOADED = "loaded"
    SAILED = "sailed"
    ARRIVED = "arrived"
    CLEARED = "cleared"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


LEAD_STATUSES: frozenset[ShipmentStatus] = frozenset(
    {
        ShipmentStatus.REQUEST_RECEIVED,
        ShipmentStatus.UNDER_REVIEW,
        ShipmentStatus.QUOTED,
        ShipmentStatus.CUSTOMER_REQUESTED_CHANGES,
        ShipmentStatus.CUSTOMER_APPROVED,
    }
)

OPERATIONAL_STATUSES: frozenset[ShipmentStatus] = frozenset(set(ShipmentStatus) - LEAD_STATUSES)

TERMINAL_STATUSES: frozenset[ShipmentStatus] = frozenset({ShipmentStatus.DELIVERED, ShipmentStatus.CANCELLED})
