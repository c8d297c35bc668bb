"""Appointment service - Booking, rescheduling and the appointment lifecycle"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import is_admin
from ...models import User
from ...services.zoom_service import AppointmentZoomService
from ..doctors.aggregate import DAY_NAMES
from ..doctors.repository import DoctorRepository
from ..doctors.schemas import AvailabilityResponse
from ..errors import ExternalServiceError, InvalidOperationError, NotFoundError, UnauthorizedError, ValidationError
from ..saga import Saga
from ..value_objects import PatientInfo
from .aggregate import Appointment, AppointmentStatus
from .repository import AppointmentRepository
from .schemas import AppointmentResponse, BookAppointmentRequest, CalendarDayResponse, CalendarDoctorAvailability
from .slot_service import AppointmentSlotService

logger = logging.getLogger(__name__)

ADMIN_TRANSITIONS = ("confirm", "start", "complete", "mark_no_show")

# Tries at a unique appointment number before giving up
NUMBER_ATTEMPTS = 3

# Widest range the admin calendar returns in one request
MAX_CALENDAR_DAYS = 31


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, zoom: Optional[AppointmentZoomService] = None):
        self.db = db
        self.repo = AppointmentRepository()
        self.doctors = DoctorRepository()
        self.slots = AppointmentSlotService(db)
        self.zoom = zoom or AppointmentZoomService()

    # ========================================================================
    # BOOKING
    # ========================================================================

    async def book(self, user: User, data: BookAppointmentRequest) -> Appointment:
        """
        Book a slot with a doctor.

        The appointment is committed before the Zoom meeting is created. If
        Zoom fails the booking stands without a meeting link.
        """
        for attempt in range(1, NUMBER_ATTEMPTS + 1):
            try:
                appointment = self._create_once(user, data)
                break
            except IntegrityError:
                self.db.rollback()
                logger.warning(
                    f"⚠️ Appointment number collision for user {user.id} (attempt {attempt}/{NUMBER_ATTEMPTS})"
                )
        else:
            raise InvalidOperationError("Could not allocate an appointment number, please try again")

        try:
            if await self.zoom.create_meeting_for(appointment):
                self.repo.update(self.db, appointment)
                self.db.commit()
        except ExternalServiceError as e:
            logger.warning(f"⚠️ Zoom meeting not created for {appointment.appointment_number}: {e.message}")

        return appointment

    def _create_once(self, user: User, data: BookAppointmentRequest) -> Appointment:
        self.slots.validate_appointment_slot(data.doctorId, data.appointmentDate, data.durationInMinutes)

        patient = PatientInfo.create(
            patient_name=data.patientName,
            patient_age=data.patientAge,
            medical_history=data.medicalHistory,
            current_concerns=data.currentConcerns,
            emergency_contact=data.emergencyContact,
            emergency_phone=data.emergencyPhone,
        )
        appointment = Appointment.create(
            user_id=user.id,
            doctor_id=data.doctorId,
            appointment_date=data.appointmentDate,
            duration_in_minutes=data.durationInMinutes,
            appointment_number=self.repo.generate_appointment_number(self.db),
            patient_info=patient,
        )
        self.repo.add(self.db, appointment)
        self.db.commit()
        logger.info(
            f"✅ Appointment {appointment.appointment_number} booked with doctor {appointment.doctor_id} "
            f"at {appointment.appointment_date}"
        )
        return appointment

    # ========================================================================
    # QUERIES
    # ========================================================================

    def list_for_user(self, user: User, upcoming_only: bool = False) -> list[Appointment]:
        return self.repo.list_for_user(self.db, user.id, upcoming_only)

    def list_all(
        self, status: Optional[AppointmentStatus] = None, doctor_id: Optional[str] = None
    ) -> list[Appointment]:
        return self.repo.list_all(self.db, status, doctor_id)

    def get_appointment(self, user: User, appointment_id: str) -> Appointment:
        """Owner or admin only"""
        appointment = self._load(appointment_id)
        if appointment.user_id != user.id and not is_admin(user):
            raise UnauthorizedError("You do not have access to this appointment")
        return appointment

    def available_slots(self, doctor_id: str, day: date, duration_in_minutes: int) -> list[datetime]:
        if self.doctors.get_by_id(self.db, doctor_id) is None:
            raise NotFoundError("Doctor", doctor_id)
        return self.slots.generate_available_slots(doctor_id, day, duration_in_minutes)

    def status_history(self, appointment_id: str):
        self._load(appointment_id)
        return self.repo.list_status_audits(self.db, appointment_id)

    def calendar_view(
        self, start: date, end: date, doctor_id: Optional[str] = None
    ) -> list[CalendarDayResponse]:
        """
        Admin calendar for the inclusive range [start, end].

        Every day in the range gets an entry, even when empty. Each entry
        holds the day's non-cancelled appointments and the active weekly
        availability windows of every active doctor (or only doctor_id).
        """
        if end < start:
            raise ValidationError("End date cannot be before start date")
        days = (end - start).days + 1
        if days > MAX_CALENDAR_DAYS:
            raise ValidationError(f"Calendar range cannot exceed {MAX_CALENDAR_DAYS} days")

        if doctor_id:
            doctor = self.doctors.get_by_id(self.db, doctor_id)
            if doctor is None:
                raise NotFoundError("Doctor", doctor_id)
            doctors = [doctor]
        else:
            doctors = self.doctors.list_active(self.db)

        range_start = datetime.combine(start, time.min)
        range_end = datetime.combine(end + timedelta(days=1), time.min)
        booked: dict[date, list[AppointmentResponse]] = {}
        for doctor in doctors:
            for appointment in self.repo.list_for_doctor_between(self.db, doctor.id, range_start, range_end):
                booked.setdefault(appointment.appointment_date.date(), []).append(
                    AppointmentResponse.from_domain(appointment, doctor.name)
                )

        calendar = []
        for offset in range(days):
            day = start + timedelta(days=offset)
            availability = []
            for doctor in doctors:
                windows = doctor.windows_for(day.weekday()) if doctor.is_active else []
                if windows:
                    availability.append(
                        CalendarDoctorAvailability(
                            doctorId=doctor.id,
                            doctorName=doctor.name,
                            windows=[AvailabilityResponse.from_domain(w) for w in windows],
                        )
                    )
            calendar.append(
                CalendarDayResponse(
                    day=day,
                    dayName=DAY_NAMES[day.weekday()],
                    appointments=sorted(booked.get(day, []), key=lambda a: a.appointmentDate),
                    availability=availability,
                )
            )
        return calendar

    # ========================================================================
    # PATIENT ACTIONS
    # ========================================================================

    async def cancel(self, user: User, appointment_id: str) -> Appointment:
        """Cancel an appointment; only the patient who booked it may do so"""
        appointment = self._load_owned(user, appointment_id)
        appointment.cancel()
        self.repo.update(self.db, appointment)
        self.db.commit()
        logger.info(f"🚫 Appointment {appointment.appointment_number} cancelled")

        try:
            await self.zoom.cancel_meeting_for(appointment)
            self.repo.update(self.db, appointment)
            self.db.commit()
        except ExternalServiceError as e:
            logger.warning(
                f"⚠️ Zoom meeting {appointment.zoom_meeting_id} not deleted for "
                f"{appointment.appointment_number}: {e.message}"
            )

        return appointment

    async def reschedule(self, user: User, appointment_id: str, new_date: datetime) -> Appointment:
        """
        Move an appointment to a new slot and move its Zoom meeting with it.

        If Zoom cannot be updated the appointment keeps its old date and
        ExternalServiceError propagates; nothing is committed.
        """
        appointment = self._load_owned(user, appointment_id)
        if not appointment.can_be_rescheduled():
            raise InvalidOperationError(
                f"Cannot reschedule appointment with status {appointment.status.value}"
            )

        self.slots.validate_appointment_slot(
            appointment.doctor_id,
            new_date,
            appointment.duration_in_minutes,
            exclude_appointment_id=appointment.id,
        )

        old_date = appointment.appointment_date
        old_status = appointment.status
        old_updated = appointment.updated_at

        def restore_slot():
            appointment.appointment_date = old_date
            appointment.status = old_status
            appointment.updated_at = old_updated

        saga = Saga(f"reschedule {appointment.appointment_number}")
        saga.add_step("move appointment", lambda: appointment.reschedule(new_date), restore_slot)
        saga.add_step("move zoom meeting", lambda: self.zoom.reschedule_meeting_for(appointment))
        await saga.run()

        self.repo.update(self.db, appointment)
        self.db.commit()
        logger.info(f"📅 Appointment {appointment.appointment_number} moved {old_date} → {new_date}")
        return appointment

    # ========================================================================
    # ADMIN
    # ========================================================================

    def transition(self, appointment_id: str, operation: str, notes: Optional[str] = None) -> Appointment:
        """Admin lifecycle moves: confirm, start, complete, mark_no_show"""
        if operation not in ADMIN_TRANSITIONS:
            raise InvalidOperationError(f"Unknown appointment operation: {operation}")

        appointment = self._load(appointment_id)
        old_status = appointment.status
        if operation == "complete":
            appointment.complete(notes)
        else:
            getattr(appointment, operation)()

        self.repo.update(self.db, appointment)
        self.db.commit()
        logger.info(
            f"📋 Appointment {appointment.appointment_number}: {old_status.value} → {appointment.status.value}"
        )
        return appointment

    def override_status(
        self, admin: User, appointment_id: str, status: AppointmentStatus, reason: str
    ) -> Appointment:
        """Force a status outside the normal lifecycle, leaving an audit row behind"""
        if not is_admin(admin):
            raise UnauthorizedError("Only administrators can override appointment status")

        appointment = self._load(appointment_id)
        previous = appointment.override_status(status)
        self.repo.update(self.db, appointment)
        self.repo.add_status_audit(self.db, appointment.id, admin.id, previous, status, reason)
        self.db.commit()

        logger.warning(
            f"⚠️ Admin {admin.id} overrode appointment {appointment.appointment_number} status "
            f"{previous.value} → {status.value}: {reason}"
        )
        return appointment

    def to_response(self, appointment: Appointment) -> AppointmentResponse:
        names = self.doctors.get_names(self.db, [appointment.doctor_id])
        return AppointmentResponse.from_domain(appointment, names.get(appointment.doctor_id))

    def to_responses(self, appointments: list[Appointment]) -> list[AppointmentResponse]:
        names = self.doctors.get_names(self.db, (a.doctor_id for a in appointments))
        return [AppointmentResponse.from_domain(a, names.get(a.doctor_id)) for a in appointments]

    def _load(self, appointment_id: str) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def _load_owned(self, user: User, appointment_id: str) -> Appointment:
        appointment = self._load(appointment_id)
        if appointment.user_id != user.id:
            raise UnauthorizedError("Only the patient who booked this appointment can change it")
        return appointment
