"""Pure interval helpers for appointment slot checks"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Protocol


class Booked(Protocol):
    id: str
    appointment_date: datetime
    duration_in_minutes: int


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) intersection; touching intervals do not overlap"""
    return a_start < b_end and b_start < a_end


def find_conflict(
    existing: Iterable[Booked],
    start: datetime,
    duration_in_minutes: int,
    exclude_appointment_id: Optional[str] = None,
) -> Optional[Booked]:
    """First booked appointment overlapping the candidate window, if any"""
    end = start + timedelta(minutes=duration_in_minutes)
    for appointment in existing:
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        booked_end = appointment.appointment_date + timedelta(minutes=appointment.duration_in_minutes)
        if intervals_overlap(appointment.appointment_date, booked_end, start, end):
            return appointment
    return None


def candidate_slots(
    doctor,
    day: date,
    duration_in_minutes: int,
    earliest: Optional[datetime] = None,
) -> list[datetime]:
    """
    Step through each active window on ``day`` in ``duration_in_minutes``
    increments. Slots starting before ``earliest`` are dropped.
    """
    slots = []
    step = timedelta(minutes=duration_in_minutes)
    for window in doctor.windows_for(day.weekday()):
        slot = datetime.combine(day, window.start_time)
        window_end = datetime.combine(day, window.end_time)
        while slot + step <= window_end:
            if earliest is None or slot >= earliest:
                slots.append(slot)
            slot += step
    return sorted(slots)
