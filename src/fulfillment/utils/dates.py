from datetime import UTC, datetime


def as_utc(value: datetime | None) -> datetime | None:
    """Read a naive datetime as UTC; aware values are converted to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
