"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_duration_minutes, validate_phone
from ...utils.sanitization import sanitize_string, validate_and_sanitize_input
from ..doctors.schemas import AvailabilityResponse
from .aggregate import Appointment, AppointmentStatus


def _to_naive_utc(v: datetime) -> datetime:
    """Stored datetimes are naive UTC"""
    if v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class BookAppointmentRequest(BaseModel):
    """Schema for booking an appointment"""

    doctorId: str
    appointmentDate: datetime
    durationInMinutes: int = 60
    patientName: str
    patientAge: int
    medicalHistory: Optional[str] = None
    currentConcerns: Optional[str] = None
    emergencyContact: Optional[str] = None
    emergencyPhone: Optional[str] = None

    @field_validator("appointmentDate")
    @classmethod
    def normalize_date(cls, v):
        return _to_naive_utc(v)

    @field_validator("durationInMinutes")
    @classmethod
    def check_duration(cls, v):
        return validate_duration_minutes(v)

    @field_validator("patientName")
    @classmethod
    def clean_name(cls, v):
        v = sanitize_string(v)
        if not v:
            raise ValueError("Patient name is required")
        return v

    @field_validator("patientAge")
    @classmethod
    def check_age(cls, v):
        if v < 0 or v > 150:
            raise ValueError("Patient age must be between 0 and 150")
        return v

    @field_validator("medicalHistory", "currentConcerns", "emergencyContact")
    @classmethod
    def clean_text(cls, v):
        return validate_and_sanitize_input(v)

    @field_validator("emergencyPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class RescheduleAppointmentRequest(BaseModel):
    newAppointmentDate: datetime

    @field_validator("newAppointmentDate")
    @classmethod
    def normalize_date(cls, v):
        return _to_naive_utc(v)


class CompleteAppointmentRequest(BaseModel):
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v):
        return validate_and_sanitize_input(v)


class OverrideStatusRequest(BaseModel):
    """Admin-only: force a status, bypassing the normal lifecycle"""

    status: AppointmentStatus
    reason: str

    @field_validator("reason")
    @classmethod
    def check_reason(cls, v):
        v = validate_and_sanitize_input(v, max_length=500)
        if not v:
            raise ValueError("A reason is required for status overrides")
        return v


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: str
    appointmentNumber: str
    doctorId: str
    doctorName: Optional[str] = None
    appointmentDate: datetime
    endTime: datetime
    durationInMinutes: int
    status: str
    patientName: str
    patientAge: int
    medicalHistory: Optional[str] = None
    currentConcerns: Optional[str] = None
    emergencyContact: Optional[str] = None
    emergencyPhone: Optional[str] = None
    zoomJoinUrl: Optional[str] = None
    notes: Optional[str] = None
    canBeCancelled: bool
    canBeRescheduled: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, appointment: Appointment, doctor_name: Optional[str] = None) -> "AppointmentResponse":
        patient = appointment.patient_info
        return cls(
            id=appointment.id,
            appointmentNumber=appointment.appointment_number,
            doctorId=appointment.doctor_id,
            doctorName=doctor_name,
            appointmentDate=appointment.appointment_date,
            endTime=appointment.end_time,
            durationInMinutes=appointment.duration_in_minutes,
            status=appointment.status.value,
            patientName=patient.patient_name,
            patientAge=patient.patient_age,
            medicalHistory=patient.medical_history,
            currentConcerns=patient.current_concerns,
            emergencyContact=patient.emergency_contact,
            emergencyPhone=patient.emergency_phone,
            zoomJoinUrl=appointment.zoom_join_url,
            notes=appointment.notes,
            canBeCancelled=appointment.can_be_cancelled(),
            canBeRescheduled=appointment.can_be_rescheduled(),
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )


class AvailableSlotsResponse(BaseModel):
    doctorId: str
    day: date
    durationInMinutes: int
    slots: list[datetime]


class StatusAuditResponse(BaseModel):
    previousStatus: str
    newStatus: str
    adminUserId: str
    reason: Optional[str] = None
    created_at: Optional[datetime] = None


class CalendarDoctorAvailability(BaseModel):
    doctorId: str
    doctorName: str
    windows: list[AvailabilityResponse]


class CalendarDayResponse(BaseModel):
    """One day of the admin calendar: what is booked and who is working"""

    day: date
    dayName: str
    appointments: list[AppointmentResponse]
    availability: list[CalendarDoctorAvailability]
