"""Tests for the App facade."""

import pytest

from conftest import REFERENCE_DAY
from ellcworth.app import App
from ellcworth.core.modules.shipment.models import ShipmentDraft


class TestGetLifecycle:
    """Tests for the lifecycle table served to UIs."""

    def test_rows_in_lifecycle_order(self, config, database):
        """Test that rows follow lifecycle order."""
        table = App(config, database).get_lifecycle()

        assert [row["status"] for row in table][:3] == ["request_received", "under_review", "quoted"]
        assert len(table) == 14

    def test_row_contents(self, config, database):
        """Test the family, successors and owner rule of sample rows."""
        rows = {row["status"]: row for row in App(config, database).get_lifecycle()}

        assert rows["quoted"]["next"] == ["customer_requested_changes", "customer_approved"]
        assert rows["quoted"]["lead"] is True
        assert rows["quoted"]["requires_owner"] is False
        assert rows["pending"]["requires_owner"] is True
        assert rows["pending"]["next"] == ["booked", "cancelled"]
        assert rows["delivered"]["terminal"] is True
        assert rows["delivered"]["next"] == []


class TestShipmentFacade:
    @pytest.mark.asyncio
    async def test_public_request_then_track(self, config, database, lead_payload, monkeypatch):
        """Test that a public request can be tracked by its reference."""
        monkeypatch.setattr("ellcworth.core.modules.shipment.service.today_in", lambda _tz: REFERENCE_DAY)
        app = App(config, database)

        async with app.lifespan():
            created = await app.create_public_request(ShipmentDraft.model_validate(lead_payload))
            tracked = await app.track_shipment(created.reference_id.lower())

        assert tracked.id == created.id
        assert tracked.reference_id == "ELX-RORO-250115-0001"
