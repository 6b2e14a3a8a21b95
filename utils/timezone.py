"""UTC time handling. Everything internal is UTC; local time is for display only."""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_DISPLAY_TIMEZONE = "America/Argentina/Buenos_Aires"


def now_utc() -> datetime:
    """Current time in UTC. Use instead of datetime.now()."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert an aware datetime to UTC.

    Raises ValueError on naive datetimes; guessing their zone is how
    quote expiry dates end up a day off.
    """
    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> datetime:
    """
    Convert a UTC datetime to a local zone for display.

    Raises:
        ValueError: If datetime is naive or the zone is unknown
    """
    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")
    return dt.astimezone(zone)


def parse_iso(iso_string: str) -> datetime:
    """Parse an ISO 8601 string with offset into a UTC datetime."""
    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        raise ValueError("ISO string must include a timezone offset (e.g. 'Z' or '+00:00')")
    return to_utc(dt)


def add_days(dt: datetime, days: int) -> datetime:
    """Shift a datetime by whole days."""
    return dt + timedelta(days=days)


def deadline_utc(value, tz_name: str = DEFAULT_DISPLAY_TIMEZONE):
    """
    Normalize a deadline to an aware UTC datetime.

    A date (or a "YYYY-MM-DD" string) means the end of that day in tz_name.
    A naive datetime is read as local time in tz_name. Aware datetimes are
    converted to UTC. None and unrecognized types pass through unchanged.

    Raises:
        ValueError: If a string is not ISO 8601
    """
    if isinstance(value, str):
        text = value.strip()
        value = date.fromisoformat(text) if len(text) == 10 else datetime.fromisoformat(text)

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=ZoneInfo(tz_name))
        return to_utc(value)
    if isinstance(value, date):
        return to_utc(datetime.combine(value, time.max, tzinfo=ZoneInfo(tz_name)))
    return value
