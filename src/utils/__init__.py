"""Utility functions."""

from src.utils.clock import Clock, FrozenClock, utc_now
from src.utils.formatting import format_plain, format_with_underscores, to_money

__all__ = [
    "Clock",
    "FrozenClock",
    "utc_now",
    "format_plain",
    "format_with_underscores",
    "to_money",
]
