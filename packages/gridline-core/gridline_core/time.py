"""Time utility helpers for consistent timezone handling."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Return datetime guaranteed to be timezone-aware in UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_api_datetime(value: str) -> datetime:
    """Parse provider datetime strings as UTC-aware datetimes."""
    value = value.strip()
    # Replace trailing Z with explicit UTC offset so fromisoformat works cross-version
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    return ensure_utc(dt)


def from_unix(timestamp: int | float) -> datetime:
    """Convert a Unix timestamp (seconds) to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp, tz=UTC)


def to_unix(dt: datetime) -> int:
    """Convert a datetime to whole Unix seconds, treating naive values as UTC."""
    return int(ensure_utc(dt).timestamp())


def utc_isoformat(dt: datetime) -> str:
    """Serialize datetime as ISO 8601 string with trailing Z."""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def odds_api_timestamp(dt: datetime) -> str:
    """Format a datetime the way The Odds API expects commenceTime filters (second precision)."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")
