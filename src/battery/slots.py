"""Half-hour slot keys covering one day.

A slot is identified by its start time in minutes after midnight
(``hour * 60 + minute``), giving 48 contiguous keys from 0 to 1410.
"""

from datetime import time

from .models import WindowReading

SLOT_MINUTES = 30
SLOTS_PER_DAY = 48


def slot_key(hour: int, minute: int) -> int:
    """Return the integer key for the slot starting at hour:minute."""
    if not 0 <= hour <= 23 or minute not in (0, SLOT_MINUTES):
        raise ValueError(f"Not a half-hour slot: {hour:02d}:{minute:02d}")
    return hour * 60 + minute


SLOT_KEYS: tuple[int, ...] = tuple(
    slot_key(hour, minute) for hour in range(24) for minute in (0, SLOT_MINUTES)
)
LAST_SLOT = slot_key(23, 30)


def slot_time(key: int) -> time:
    """Start time of a slot."""
    return time(key // 60, key % 60)


def slot_label(key: int) -> str:
    """Column label used by meter exports, e.g. '23:30 - 00:00'."""
    start = slot_time(key)
    end_minutes = (key + SLOT_MINUTES) % (24 * 60)
    return f"{start.hour:02d}:{start.minute:02d} - {end_minutes // 60:02d}:{end_minutes % 60:02d}"


def empty_day() -> dict[int, WindowReading]:
    """All 48 slots with zero consumption and generation."""
    return {key: WindowReading() for key in SLOT_KEYS}
