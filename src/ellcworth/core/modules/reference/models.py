from enum import StrEnum


class TransportMode(StrEnum):
    """Transport categories a shipment can travel under."""

    RORO = "RoRo"  # Driven-on vehicles
    CONTAINER = "Container"  # Full container load
    AIR = "Air"
    LCL = "LCL"  # Shared container
    DOCUMENTS = "Documents"  # Secure documents by air
    PALLETS = "Pallets"
    PARCELS = "Parcels"


MODE_CODES: dict[TransportMode, str] = {
    TransportMode.RORO: "RORO",
    TransportMode.CONTAINER: "FCL",
    TransportMode.AIR: "AIR",
    TransportMode.LCL: "LCL",
    TransportMode.DOCUMENTS: "DOC",
    TransportMode.PARCELS: "PAR",
    TransportMode.PALLETS: "PAL",
}

GENERAL_MODE_CODE = "GEN"

DEFAULT_PREFIX = "ELX"
