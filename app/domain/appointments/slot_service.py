"""Appointment slot service - availability and conflict checks for a doctor's calendar"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import APPOINTMENT_MIN_LEAD_MINUTES
from ..doctors.aggregate import Doctor
from ..doctors.repository import DoctorRepository
from ..errors import InvalidOperationError, NotFoundError, ValidationError
from ..state_machine import utcnow
from .repository import AppointmentRepository
from .slots import candidate_slots, find_conflict

logger = logging.getLogger(__name__)


class AppointmentSlotService:
    """
    Answers "can this doctor see someone at this time?".

    A slot is bookable when the doctor is active, the whole interval sits in
    one of the doctor's weekly windows, and no other non-cancelled appointment
    of that doctor overlaps it.
    """

    def __init__(self, db: Session, min_lead_minutes: int = APPOINTMENT_MIN_LEAD_MINUTES):
        self.db = db
        self.doctors = DoctorRepository()
        self.appointments = AppointmentRepository()
        self.min_lead = timedelta(minutes=min_lead_minutes)

    def _bookable_doctor(self, doctor_id: str) -> Optional[Doctor]:
        doctor = self.doctors.get_by_id(self.db, doctor_id)
        if doctor is None or not doctor.is_active:
            return None
        return doctor

    def is_slot_available(
        self,
        doctor_id: str,
        start: datetime,
        duration_in_minutes: int,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        doctor = self._bookable_doctor(doctor_id)
        if doctor is None:
            return False
        if not doctor.is_available_at(start, duration_in_minutes):
            return False
        return not self.appointments.has_conflicting_appointment(
            self.db, doctor_id, start, duration_in_minutes, exclude_appointment_id
        )

    def validate_appointment_slot(
        self,
        doctor_id: str,
        start: datetime,
        duration_in_minutes: int,
        exclude_appointment_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Raise a DomainError describing why the slot cannot be booked"""
        now = now or utcnow()
        if duration_in_minutes <= 0:
            raise ValidationError("Duration must be positive")
        if start <= now + self.min_lead:
            minutes = int(self.min_lead.total_seconds() // 60)
            raise InvalidOperationError(f"Appointment must be scheduled at least {minutes} minutes in advance")

        doctor = self.doctors.get_by_id(self.db, doctor_id)
        if doctor is None:
            raise NotFoundError("Doctor", doctor_id)
        if not doctor.is_active:
            raise InvalidOperationError("Doctor is not accepting appointments")
        if not doctor.is_available_at(start, duration_in_minutes):
            raise InvalidOperationError("The selected time is outside the doctor's availability")
        if self.appointments.has_conflicting_appointment(
            self.db, doctor_id, start, duration_in_minutes, exclude_appointment_id
        ):
            raise InvalidOperationError("The selected time slot is not available")

    def generate_available_slots(
        self,
        doctor_id: str,
        day: date,
        duration_in_minutes: int,
        now: Optional[datetime] = None,
    ) -> list[datetime]:
        """Open start times on ``day``, stepping by the duration through each window"""
        if duration_in_minutes <= 0:
            raise ValidationError("Duration must be positive")

        doctor = self._bookable_doctor(doctor_id)
        if doctor is None:
            return []

        earliest = (now or utcnow()) + self.min_lead
        day_start = datetime.combine(day, datetime.min.time())
        booked = self.appointments.list_for_doctor_between(
            self.db, doctor_id, day_start, day_start + timedelta(days=1)
        )

        slots = [
            slot
            for slot in candidate_slots(doctor, day, duration_in_minutes, earliest=earliest)
            if slot > earliest and find_conflict(booked, slot, duration_in_minutes) is None
        ]
        logger.debug(f"📊 {len(slots)} open slots for doctor {doctor_id} on {day}")
        return slots
