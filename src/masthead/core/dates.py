"""Date normalization shared by the core modules."""

from datetime import date, datetime, timezone


def as_date(value: date | datetime, name: str = "value") -> date:
    """Strip time-of-day. Raises TypeError for anything that isn't a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"{name} must be a date, got {type(value).__name__}")


def parse_date(raw: str | None) -> date | None:
    """Parse an ISO date or timestamp string from the backend."""
    if not raw:
        return None
    return date.fromisoformat(raw.split("T")[0])


def parse_datetime(raw: str | None) -> datetime | None:
    """Parse an ISO timestamp. Values without an offset are taken as UTC."""
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
