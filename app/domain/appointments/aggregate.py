"""
Appointment aggregate.

    scheduled -> confirmed -> in_progress -> completed
    confirmed -> completed
    scheduled | confirmed -> cancelled | no_show
    scheduled | confirmed -> scheduled        (reschedule)

Slot conflicts are checked by AppointmentSlotService before booking or
rescheduling; this class only swaps dates. ``override_status`` skips the
table entirely and is only reachable through the audited admin service.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ..errors import InvalidOperationError, ValidationError
from ..state_machine import Transition, apply_transition, utcnow
from ..value_objects import PatientInfo


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


_OPEN = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})

APPOINTMENT_TRANSITIONS = {
    "confirm": Transition(frozenset({AppointmentStatus.SCHEDULED}), AppointmentStatus.CONFIRMED),
    "start": Transition(frozenset({AppointmentStatus.CONFIRMED}), AppointmentStatus.IN_PROGRESS),
    "complete": Transition(
        frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS}),
        AppointmentStatus.COMPLETED,
    ),
    "cancel": Transition(_OPEN, AppointmentStatus.CANCELLED),
    "mark_no_show": Transition(_OPEN, AppointmentStatus.NO_SHOW),
    "reschedule": Transition(_OPEN, AppointmentStatus.SCHEDULED),
}


@dataclass
class Appointment:
    user_id: str
    doctor_id: str
    appointment_date: datetime
    duration_in_minutes: int
    appointment_number: str
    patient_info: PatientInfo
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    zoom_meeting_id: Optional[str] = None
    zoom_join_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        user_id: str,
        doctor_id: str,
        appointment_date: datetime,
        duration_in_minutes: int,
        appointment_number: str,
        patient_info: PatientInfo,
        now: Optional[datetime] = None,
    ) -> "Appointment":
        now = now or utcnow()
        if appointment_date <= now:
            raise ValidationError("Appointment date must be in the future")
        if duration_in_minutes <= 0:
            raise ValidationError("Duration must be positive")
        if not appointment_number or not appointment_number.strip():
            raise ValidationError("Appointment number cannot be empty")

        return cls(
            user_id=user_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            duration_in_minutes=duration_in_minutes,
            appointment_number=appointment_number.strip(),
            patient_info=patient_info,
        )

    @property
    def end_time(self) -> datetime:
        return self.appointment_date + timedelta(minutes=self.duration_in_minutes)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def confirm(self) -> None:
        self._set_status(self._transition("confirm"))

    def start(self) -> None:
        self._set_status(self._transition("start"))

    def complete(self, notes: Optional[str] = None) -> None:
        self._set_status(self._transition("complete"))
        if notes:
            self.add_notes(notes)

    def cancel(self) -> None:
        if not self.can_be_cancelled():
            raise InvalidOperationError(f"Cannot cancel appointment with status {self.status.value}")
        self._set_status(APPOINTMENT_TRANSITIONS["cancel"].target)

    def mark_no_show(self) -> None:
        self._set_status(self._transition("mark_no_show"))

    def reschedule(self, new_date: datetime, now: Optional[datetime] = None) -> None:
        if not self.can_be_rescheduled():
            raise InvalidOperationError(
                f"Cannot reschedule appointment with status {self.status.value}"
            )
        if new_date <= (now or utcnow()):
            raise ValidationError("New appointment date must be in the future")

        self.appointment_date = new_date
        self._set_status(APPOINTMENT_TRANSITIONS["reschedule"].target)

    def override_status(self, status: AppointmentStatus) -> AppointmentStatus:
        """Set the status without consulting the transition table; returns the old one"""
        previous = self.status
        self._set_status(status)
        return previous

    def can_be_cancelled(self) -> bool:
        return APPOINTMENT_TRANSITIONS["cancel"].allows(self.status)

    def can_be_rescheduled(self) -> bool:
        return APPOINTMENT_TRANSITIONS["reschedule"].allows(self.status)

    # ------------------------------------------------------------------
    # Meeting, notes, patient
    # ------------------------------------------------------------------

    def set_zoom_meeting(self, meeting_id: str, join_url: str) -> None:
        if not meeting_id or not str(meeting_id).strip():
            raise ValidationError("Meeting ID cannot be empty")
        if not join_url or not join_url.strip():
            raise ValidationError("Join URL cannot be empty")
        self.zoom_meeting_id = str(meeting_id).strip()
        self.zoom_join_url = join_url.strip()
        self._touch()

    def clear_zoom_meeting(self) -> None:
        self.zoom_meeting_id = None
        self.zoom_join_url = None
        self._touch()

    def has_zoom_meeting(self) -> bool:
        return bool(self.zoom_meeting_id)

    def add_notes(self, notes: Optional[str]) -> None:
        if not notes or not notes.strip():
            return
        self.notes = notes.strip() if not self.notes else f"{self.notes}\n{notes.strip()}"
        self._touch()

    def update_patient_info(self, patient_info: PatientInfo) -> None:
        self.patient_info = patient_info
        self._touch()

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        return self.appointment_date > (now or utcnow()) and self.status != AppointmentStatus.CANCELLED

    def _transition(self, operation: str) -> AppointmentStatus:
        return apply_transition("appointment", APPOINTMENT_TRANSITIONS, operation, self.status)

    def _set_status(self, status: AppointmentStatus) -> None:
        self.status = status
        self._touch()

    def _touch(self) -> None:
        self.updated_at = utcnow()
