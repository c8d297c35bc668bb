"""Doctor aggregate with recurring weekly availability windows"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Optional

from ..errors import InvalidOperationError, ValidationError
from ..state_machine import utcnow

DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass
class DoctorAvailability:
    doctor_id: str
    day_of_week: int  # 0 = Monday, as datetime.weekday()
    start_time: time
    end_time: time
    is_active: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def create(cls, doctor_id: str, day_of_week: int, start_time: time, end_time: time) -> "DoctorAvailability":
        if day_of_week < 0 or day_of_week > 6:
            raise ValidationError("Day of week must be between 0 (Monday) and 6 (Sunday)")
        if start_time >= end_time:
            raise ValidationError("Start time must be before end time")
        return cls(doctor_id=doctor_id, day_of_week=day_of_week, start_time=start_time, end_time=end_time)

    def update_times(self, start_time: time, end_time: time) -> None:
        if start_time >= end_time:
            raise ValidationError("Start time must be before end time")
        self.start_time = start_time
        self.end_time = end_time

    def covers(self, start: datetime, duration_in_minutes: int) -> bool:
        """True when [start, start + duration) sits inside this window on the same day"""
        if not self.is_active or start.weekday() != self.day_of_week:
            return False
        end = start + timedelta(minutes=duration_in_minutes)
        window_start = datetime.combine(start.date(), self.start_time)
        window_end = datetime.combine(start.date(), self.end_time)
        return window_start <= start and end <= window_end

    def overlaps_with(self, other: "DoctorAvailability") -> bool:
        if self.day_of_week != other.day_of_week:
            return False
        return self.start_time < other.end_time and other.start_time < self.end_time

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]


@dataclass
class Doctor:
    name: str
    specialty: str
    email: str
    phone: Optional[str] = None
    biography: Optional[str] = None
    is_active: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    availability: list[DoctorAvailability] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, name: str, specialty: str, email: str, phone: Optional[str] = None,
               biography: Optional[str] = None) -> "Doctor":
        if not name or not name.strip():
            raise ValidationError("Doctor name cannot be empty")
        if not specialty or not specialty.strip():
            raise ValidationError("Specialty cannot be empty")
        return cls(
            name=name.strip(),
            specialty=specialty.strip(),
            email=email,
            phone=phone,
            biography=biography.strip() if biography else None,
        )

    def add_availability(self, availability: DoctorAvailability) -> None:
        if any(a.overlaps_with(availability) for a in self.availability if a.is_active):
            raise InvalidOperationError("Availability overlaps with existing schedule")
        self.availability.append(availability)

    def remove_availability(self, availability_id: str) -> None:
        self.availability = [a for a in self.availability if a.id != availability_id]

    def windows_for(self, weekday: int) -> list[DoctorAvailability]:
        return sorted(
            (a for a in self.availability if a.is_active and a.day_of_week == weekday),
            key=lambda a: a.start_time,
        )

    def is_available_at(self, start: datetime, duration_in_minutes: int) -> bool:
        if not self.is_active:
            return False
        return any(a.covers(start, duration_in_minutes) for a in self.availability)
