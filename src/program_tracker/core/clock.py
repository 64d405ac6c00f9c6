"""
Injected time source.

Every time-dependent computation takes a Clock so tests can pin "now".
"""

from datetime import date, datetime, timedelta, timezone
from typing import Protocol

from .config import MS_PER_DAY


class Clock(Protocol):
    """Supplies the current instant as an aware UTC datetime."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Clock pinned to a settable instant.

    Naive datetimes are interpreted as UTC.
    """

    def __init__(self, instant: datetime):
        self._instant = _as_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = _as_utc(instant)

    def advance(self, *, days: float = 0, hours: float = 0) -> None:
        self._instant += timedelta(days=days, hours=hours)


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_millis(instant: datetime) -> int:
    """Convert a datetime to epoch milliseconds."""
    return int(_as_utc(instant).timestamp() * 1000)


def from_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def day_of(millis: int) -> date:
    """Calendar day (UTC) containing the given instant."""
    return from_millis(millis).date()


def now_millis(clock: Clock) -> int:
    return to_millis(clock.now())


def add_days(millis: int, days: int) -> int:
    return millis + days * MS_PER_DAY
