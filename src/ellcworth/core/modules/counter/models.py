"""Atomic named counters backing shipment reference sequences."""

from ellcworth.core.db import MongoModel


class Counter(MongoModel):
    """Monotonic sequence for one key.

    Keys are "<MODECODE>-<YYMMDD>", e.g. "RORO-250115", so every transport
    mode restarts at 1 each calendar day. Uses MongoDB atomic operations to
    prevent duplicates. Indexed on key - unique.
    """

    key: str
    seq: int = 0  # Current value; next number will be seq + 1
