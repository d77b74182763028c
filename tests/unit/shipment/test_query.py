"""Tests for shipment list query building."""

from datetime import datetime
from uuid import UUID

from ellcworth.core.modules.lifecycle.models import ShipmentStatus
from ellcworth.core.modules.reference.models import TransportMode
from ellcworth.core.modules.shipment.query import SEARCH_FIELDS, ShipmentFilters, build_shipment_query


class TestBuildShipmentQuery:
    """Tests for build_shipment_query function."""

    def test_no_filters_excludes_deleted_only(self):
        """Test that empty filters still hide soft-deleted shipments."""
        assert build_shipment_query(ShipmentFilters()) == {"is_deleted": False}

    def test_equality_filters(self):
        """Test owner, status, mode and port filters map to exact matches."""
        owner = UUID("87654321-4321-8765-4321-876543218765")
        filters = ShipmentFilters(
            owner_ref=owner,
            status=ShipmentStatus.BOOKED,
            transport_mode=TransportMode.RORO,
            origin_port="Tilbury",
            destination_port="Tema",
        )

        assert build_shipment_query(filters) == {
            "is_deleted": False,
            "owner_ref": owner,
            "status": "booked",
            "transport_mode": "RoRo",
            "ports.origin_port": "Tilbury",
            "ports.destination_port": "Tema",
        }

    def test_shipping_date_range(self):
        """Test date bounds are inclusive and may be given alone."""
        start = datetime(2025, 1, 1)
        end = datetime(2025, 1, 31)

        assert build_shipment_query(ShipmentFilters(from_date=start, to_date=end))["shipping_date"] == {
            "$gte": start,
            "$lte": end,
        }
        assert build_shipment_query(ShipmentFilters(to_date=end))["shipping_date"] == {"$lte": end}

    def test_search_covers_every_text_field(self):
        """Test that search text is matched against every searchable field."""
        query = build_shipment_query(ShipmentFilters(search=" corolla "))

        assert query["$or"] == [{field: {"$regex": "corolla", "$options": "i"}} for field in SEARCH_FIELDS]

    def test_search_text_is_escaped(self):
        """Test that regex metacharacters in user text match literally."""
        query = build_shipment_query(ShipmentFilters(search="ELX-RORO.250115(1)"))
        assert query["$or"][0]["reference_id"]["$regex"] == r"ELX\-RORO\.250115\(1\)"

    def test_blank_search_ignored(self):
        """Test that whitespace-only search text adds no clause."""
        assert "$or" not in build_shipment_query(ShipmentFilters(search="   "))
