"""Tests for the shipment lifecycle policy."""

import pytest

from ellcworth.core.modules.lifecycle.models import (
    LEAD_STATUSES,
    OPERATIONAL_STATUSES,
    TERMINAL_STATUSES,
    ShipmentStatus,
)
from ellcworth.core.modules.lifecycle.policy import (
    TRANSITIONS,
    allowed_next_statuses,
    allowed_previous_statuses,
    can_transition,
    is_lead,
    is_terminal,
    required_fields,
    required_owner_ref,
)
from ellcworth.errors import ValidationError

S = ShipmentStatus
ORDER = list(ShipmentStatus)


class TestTransitions:
    """Tests for which statuses may follow which."""

    def test_every_status_has_an_entry(self):
        """Test that the transition table covers every status."""
        assert set(TRANSITIONS) == set(ShipmentStatus)

    @pytest.mark.parametrize("status", [S.DELIVERED, S.CANCELLED])
    def test_terminal_statuses_are_dead_ends(self, status):
        """Test that delivered and cancelled have no successors."""
        assert allowed_next_statuses(status) == frozenset()
        assert is_terminal(status)

    def test_customer_approved_bridges_into_operations(self):
        """Test that an approved quote can become a pending booking."""
        assert can_transition(S.CUSTOMER_APPROVED, S.PENDING)

    def test_request_received_cannot_jump_to_pending(self):
        """Test that a fresh request cannot jump straight to pending."""
        assert not can_transition(S.REQUEST_RECEIVED, S.PENDING)

    def test_only_one_cross_family_transition(self):
        """Test that customer_approved to pending is the only way from leads to operations."""
        crossings = {
            (source, target)
            for source, targets in TRANSITIONS.items()
            for target in targets
            if (source in LEAD_STATUSES) != (target in LEAD_STATUSES)
        }
        assert crossings == {(S.CUSTOMER_APPROVED, S.PENDING)}

    def test_no_skipping_ahead(self):
        """Test that statuses cannot be skipped."""
        assert not can_transition(S.BOOKED, S.SAILED)
        assert not can_transition(S.REQUEST_RECEIVED, S.QUOTED)
        assert not can_transition(S.QUOTED, S.PENDING)

    def test_only_regression_is_quote_revision(self):
        """Test that the quote revision is the only backwards step."""
        backwards = {
            (source, target)
            for source, targets in TRANSITIONS.items()
            for target in targets
            if ORDER.index(target) < ORDER.index(source)
        }
        assert backwards == {(S.CUSTOMER_REQUESTED_CHANGES, S.QUOTED)}

    def test_quote_revision_cycle(self):
        """Test that a quote can go back and forth with requested changes."""
        assert can_transition(S.QUOTED, S.CUSTOMER_REQUESTED_CHANGES)
        assert can_transition(S.CUSTOMER_REQUESTED_CHANGES, S.QUOTED)

    def test_cancellation_from_every_live_operational_status(self):
        """Test that every non-terminal operational status can be cancelled."""
        for status in OPERATIONAL_STATUSES - TERMINAL_STATUSES:
            assert S.CANCELLED in allowed_next_statuses(status), status

    def test_leads_cannot_be_cancelled(self):
        """Test that no lead status leads to cancelled."""
        for status in LEAD_STATUSES:
            assert S.CANCELLED not in allowed_next_statuses(status), status

    def test_operational_happy_path(self):
        """Test that the operational statuses chain from pending to delivered."""
        path = [S.PENDING, S.BOOKED, S.AT_ORIGIN_YARD, S.LOADED, S.SAILED, S.ARRIVED, S.CLEARED, S.DELIVERED]
        for current, following in zip(path, path[1:], strict=False):
            assert can_transition(current, following)

    def test_same_status_is_not_a_transition(self):
        """Test that no status may follow itself."""
        for status in ShipmentStatus:
            assert not can_transition(status, status)

    def test_previous_statuses(self):
        """Test that predecessors are derived from the transition table."""
        assert allowed_previous_statuses(S.PENDING) == {S.CUSTOMER_APPROVED}
        assert allowed_previous_statuses(S.QUOTED) == {S.UNDER_REVIEW, S.CUSTOMER_REQUESTED_CHANGES}
        assert allowed_previous_statuses(S.REQUEST_RECEIVED) == frozenset()

    def test_plain_strings_accepted(self):
        """Test that raw status strings are accepted."""
        assert allowed_next_statuses("quoted") == {S.CUSTOMER_REQUESTED_CHANGES, S.CUSTOMER_APPROVED}

    def test_unknown_status_raises(self):
        """Test that an unknown status is a validation error on status."""
        with pytest.raises(ValidationError) as exc_info:
            allowed_next_statuses("shipped")
        assert exc_info.value.field == "status"


class TestRequirements:
    """Tests for status-dependent required fields."""

    def test_owner_optional_only_for_leads(self):
        """Test that only lead statuses may lack an owner."""
        for status in ShipmentStatus:
            assert required_owner_ref(status) is not is_lead(status)

    def test_new_request_needs_only_a_name(self):
        """Test that a new quote request only needs the shipper's name."""
        assert set(required_fields(S.REQUEST_RECEIVED)) == {"shipper.name"}

    def test_quote_needs_contact_route_and_mode(self):
        """Test that quoting needs an email, a route and a mode."""
        assert set(required_fields(S.QUOTED)) == {
            "shipper.name",
            "shipper.email",
            "transport_mode",
            "ports.origin_port",
            "ports.destination_port",
        }

    @pytest.mark.parametrize("status", sorted(OPERATIONAL_STATUSES))
    def test_operational_statuses_need_full_booking(self, status):
        """Test that every operational status needs the complete booking fields."""
        assert set(required_fields(status)) == {
            "transport_mode",
            "shipper.name",
            "shipper.address",
            "shipper.email",
            "consignee.name",
            "consignee.address",
            "ports.origin_port",
            "ports.destination_port",
        }
