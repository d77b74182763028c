"""Human-readable shipment references: ELX-RORO-250115-0001."""

import re
from datetime import date

from ellcworth.core.modules.reference.models import DEFAULT_PREFIX, GENERAL_MODE_CODE, MODE_CODES, TransportMode
from ellcworth.errors import InvalidTransportModeError

REFERENCE_RE = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<mode>[A-Z]+)-(?P<day>\d{6})-(?P<seq>\d{4,})$")


def parse_transport_mode(mode: TransportMode | str | None) -> TransportMode | None:
    """Coerce a stored or submitted mode to TransportMode; matching ignores case."""
    if mode is None or isinstance(mode, TransportMode):
        return mode
    if isinstance(mode, str):
        for member in TransportMode:
            if member.value.lower() == mode.strip().lower():
                return member
    raise InvalidTransportModeError(mode)


def mode_code(mode: TransportMode | str | None) -> str:
    """Short code for a transport mode; a missing mode maps to GEN."""
    parsed = parse_transport_mode(mode)
    if parsed is None:
        return GENERAL_MODE_CODE
    return MODE_CODES.get(parsed, GENERAL_MODE_CODE)


def day_stamp(day: date) -> str:
    return day.strftime("%y%m%d")


def counter_key(mode: TransportMode | str | None, day: date) -> str:
    """Counter key shared by every reference of one mode on one day, e.g. RORO-250115."""
    return f"{mode_code(mode)}-{day_stamp(day)}"


def format_reference(
    mode: TransportMode | str | None, day: date, sequence: int, prefix: str = DEFAULT_PREFIX
) -> str:
    """Render <PREFIX>-<MODECODE>-<YYMMDD>-<sequence padded to 4 digits>.

    `day` is the allocation day, not the shipping date. Sequences past 9999
    keep all their digits.
    """
    if sequence < 1:
        raise ValueError(f"Sequence must be positive, got {sequence}")
    return f"{prefix}-{counter_key(mode, day)}-{sequence:04d}"


def is_generated_reference(value: str) -> bool:
    return bool(REFERENCE_RE.fullmatch(value))
