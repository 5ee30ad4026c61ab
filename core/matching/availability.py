#!/usr/bin/env python3
"""
Availability Filter - weekly schedule coverage for a job date.

Only the day of week is checked. Windows carry start/end times but the
overlap with the job's time slot is not enforced here.
"""
from datetime import date, datetime
from typing import Iterable, Union

from database.models import AvailabilityWindow, DayOfWeek

# date.weekday(): Monday == 0
_WEEKDAYS = [
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
    DayOfWeek.SUNDAY,
]


def day_of_week(when: Union[date, datetime]) -> DayOfWeek:
    return _WEEKDAYS[when.weekday()]


def is_available(windows: Iterable[AvailabilityWindow], when: Union[date, datetime]) -> bool:
    """True iff an active window exists on the job's day of week."""
    target = day_of_week(when)
    return any(w.is_active and w.day_of_week == target for w in windows)
