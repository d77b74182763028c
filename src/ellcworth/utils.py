import re
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.fullmatch(value))


def now() -> datetime:
    return datetime.now(UTC)


def today_in(timezone: str) -> date:
    """Calendar day of the current moment in the given IANA timezone."""
    return now().astimezone(ZoneInfo(timezone)).date()
