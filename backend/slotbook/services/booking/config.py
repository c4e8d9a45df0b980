# backend/slotbook/services/booking/config.py
"""
Static booking configuration: the two daily slots and month arithmetic.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal

SlotId = Literal["morning", "afternoon"]

DEFAULT_MAX_BOOKINGS_PER_MONTH = 2
MIN_BOOKINGS_PER_MONTH = 1
MAX_BOOKINGS_PER_MONTH = 31


@dataclass(frozen=True)
class SlotDefinition:
    """
    A fixed daily time window.

    Attributes:
        id: Stable identifier stored on bookings
        label: Human-readable name
        start_hour: Opening hour (24h)
        end_hour: Closing hour (24h)
    """
    id: str
    label: str
    start_hour: int
    end_hour: int


SLOTS: tuple[SlotDefinition, ...] = (
    SlotDefinition(id="morning", label="Morning", start_hour=9, end_hour=13),
    SlotDefinition(id="afternoon", label="Afternoon", start_hour=15, end_hour=18),
)

SLOT_IDS: tuple[str, ...] = tuple(s.id for s in SLOTS)


def is_valid_slot(slot_id: str) -> bool:
    return slot_id in SLOT_IDS


def empty_day() -> dict[str, bool]:
    return {slot_id: False for slot_id in SLOT_IDS}


def month_bounds(dt: date) -> tuple[str, str]:
    """
    First and last day of the calendar month containing dt, as yyyy-MM-dd.

    ISO date strings sort lexicographically in date order, so the pair can be
    used directly as an inclusive range filter on the stored text column.
    """
    last_day = calendar.monthrange(dt.year, dt.month)[1]
    first = dt.replace(day=1)
    last = dt.replace(day=last_day)
    return first.isoformat(), last.isoformat()


def iter_dates(date_start: date, date_end: date) -> list[date]:
    """Dates in [date_start, date_end], swapped if given in reverse."""
    if date_start > date_end:
        date_start, date_end = date_end, date_start

    dates = []
    current = date_start
    while current <= date_end:
        dates.append(current)
        current += timedelta(days=1)
    return dates
