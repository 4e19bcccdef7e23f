"""Calendar-day and hour-of-day bucketing for activity timestamps."""

from datetime import datetime, timedelta


def local_now(now: datetime | None = None) -> datetime:
    """Current time (or now) as an aware datetime in the local timezone."""
    if now is None:
        return datetime.now().astimezone()
    return now.astimezone()


def day_key(timestamp: datetime) -> str:
    """YYYY-MM-DD of the local calendar day containing timestamp."""
    return timestamp.astimezone().strftime("%Y-%m-%d")


def local_hour(timestamp: datetime) -> int:
    return timestamp.astimezone().hour


def last_n_days(days: int, now: datetime | None = None) -> list[str]:
    """Day keys for the last `days` calendar days, oldest first, ending today."""
    today = local_now(now)
    return [
        (today - timedelta(days=offset)).strftime("%Y-%m-%d")
        for offset in range(days - 1, -1, -1)
    ]
