"""
Clock helpers.

A clock is any zero-argument callable returning a timezone-aware datetime.
Calculations read it once per run.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


class FrozenClock:
    """A clock stuck at a fixed moment (naive moments are taken as UTC)."""

    def __init__(self, moment: datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def advance(self, **kwargs) -> None:
        """Move the clock forward, e.g. advance(days=1)."""
        self.moment = self.moment + timedelta(**kwargs)

    def __repr__(self) -> str:
        return f"<FrozenClock({self.moment.isoformat()})>"
