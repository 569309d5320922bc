"""UTC-everywhere time handling, with a freezable clock for deterministic tickets."""

from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

_frozen_at: ContextVar[datetime | None] = ContextVar("frozen_at", default=None)


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere. Inside frozen_clock()
    the frozen instant is returned instead.
    """
    frozen = _frozen_at.get()
    if frozen is not None:
        return frozen
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


@contextmanager
def frozen_clock(at: datetime):
    """
    Pin now_utc() to a fixed instant.

    Example:
        with frozen_clock(datetime(2024, 1, 1, tzinfo=timezone.utc)):
            ticket = Ticket()
            assert ticket.date.year == 2024
    """
    token = _frozen_at.set(to_utc(at))
    try:
        yield
    finally:
        _frozen_at.reset(token)
