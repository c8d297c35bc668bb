"""Appointment repository - Database operations for appointments"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ... import models
from ..state_machine import utcnow
from ..value_objects import PatientInfo
from .aggregate import Appointment, AppointmentStatus


def to_domain(row: models.Appointment) -> Appointment:
    return Appointment(
        id=row.id,
        appointment_number=row.appointment_number,
        user_id=row.user_id,
        doctor_id=row.doctor_id,
        appointment_date=row.appointment_date,
        duration_in_minutes=row.duration_in_minutes,
        status=AppointmentStatus(row.status),
        patient_info=PatientInfo(
            patient_name=row.patient_name,
            patient_age=row.patient_age,
            medical_history=row.medical_history,
            current_concerns=row.current_concerns,
            emergency_contact=row.emergency_contact,
            emergency_phone=row.emergency_phone,
        ),
        zoom_meeting_id=row.zoom_meeting_id,
        zoom_join_url=row.zoom_join_url,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply(row: models.Appointment, appointment: Appointment) -> None:
    row.appointment_number = appointment.appointment_number
    row.user_id = appointment.user_id
    row.doctor_id = appointment.doctor_id
    row.appointment_date = appointment.appointment_date
    row.end_time = appointment.end_time
    row.duration_in_minutes = appointment.duration_in_minutes
    row.status = appointment.status.value
    row.patient_name = appointment.patient_info.patient_name
    row.patient_age = appointment.patient_info.patient_age
    row.medical_history = appointment.patient_info.medical_history
    row.current_concerns = appointment.patient_info.current_concerns
    row.emergency_contact = appointment.patient_info.emergency_contact
    row.emergency_phone = appointment.patient_info.emergency_phone
    row.zoom_meeting_id = appointment.zoom_meeting_id
    row.zoom_join_url = appointment.zoom_join_url
    row.notes = appointment.notes
    row.created_at = appointment.created_at
    row.updated_at = appointment.updated_at


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: str) -> Optional[Appointment]:
        row = db.get(models.Appointment, appointment_id)
        return to_domain(row) if row else None

    @staticmethod
    def list_for_user(db: Session, user_id: str, upcoming_only: bool = False) -> list[Appointment]:
        query = db.query(models.Appointment).filter(models.Appointment.user_id == user_id)
        if upcoming_only:
            query = query.filter(
                models.Appointment.appointment_date > utcnow(),
                models.Appointment.status != AppointmentStatus.CANCELLED.value,
            )
        return [to_domain(r) for r in query.order_by(models.Appointment.appointment_date).all()]

    @staticmethod
    def list_all(
        db: Session,
        status: Optional[AppointmentStatus] = None,
        doctor_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[Appointment]:
        query = db.query(models.Appointment)
        if status:
            query = query.filter(models.Appointment.status == status.value)
        if doctor_id:
            query = query.filter(models.Appointment.doctor_id == doctor_id)
        rows = query.order_by(models.Appointment.appointment_date.desc()).limit(limit).all()
        return [to_domain(r) for r in rows]

    @staticmethod
    def list_for_doctor_between(
        db: Session, doctor_id: str, start: datetime, end: datetime
    ) -> list[Appointment]:
        """Non-cancelled appointments of the doctor that intersect [start, end)"""
        rows = (
            db.query(models.Appointment)
            .filter(
                models.Appointment.doctor_id == doctor_id,
                models.Appointment.status != AppointmentStatus.CANCELLED.value,
                models.Appointment.appointment_date < end,
                models.Appointment.end_time > start,
            )
            .order_by(models.Appointment.appointment_date)
            .all()
        )
        return [to_domain(r) for r in rows]

    @staticmethod
    def has_conflicting_appointment(
        db: Session,
        doctor_id: str,
        start: datetime,
        duration_in_minutes: int,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        end = start + timedelta(minutes=duration_in_minutes)
        query = db.query(models.Appointment.id).filter(
            models.Appointment.doctor_id == doctor_id,
            models.Appointment.status != AppointmentStatus.CANCELLED.value,
            models.Appointment.appointment_date < end,
            models.Appointment.end_time > start,
        )
        if exclude_appointment_id:
            query = query.filter(models.Appointment.id != exclude_appointment_id)
        return query.first() is not None

    @staticmethod
    def add(db: Session, appointment: Appointment) -> Appointment:
        row = models.Appointment(id=appointment.id)
        _apply(row, appointment)
        db.add(row)
        db.flush()
        return appointment

    @staticmethod
    def update(db: Session, appointment: Appointment) -> Appointment:
        row = db.get(models.Appointment, appointment.id)
        _apply(row, appointment)
        db.flush()
        return appointment

    @staticmethod
    def add_status_audit(
        db: Session,
        appointment_id: str,
        admin_user_id: str,
        previous_status: AppointmentStatus,
        new_status: AppointmentStatus,
        reason: Optional[str] = None,
    ) -> models.AppointmentStatusAudit:
        audit = models.AppointmentStatusAudit(
            appointment_id=appointment_id,
            admin_user_id=admin_user_id,
            previous_status=previous_status.value,
            new_status=new_status.value,
            reason=reason,
        )
        db.add(audit)
        db.flush()
        return audit

    @staticmethod
    def list_status_audits(db: Session, appointment_id: str) -> list[models.AppointmentStatusAudit]:
        return (
            db.query(models.AppointmentStatusAudit)
            .filter(models.AppointmentStatusAudit.appointment_id == appointment_id)
            .order_by(models.AppointmentStatusAudit.id)
            .all()
        )

    @staticmethod
    def generate_appointment_number(db: Session) -> str:
        """Next number in the APT-<year>-<sequence> series"""
        prefix = f"APT-{utcnow().year}-"
        latest = (
            db.query(models.Appointment.appointment_number)
            .filter(models.Appointment.appointment_number.like(f"{prefix}%"))
            .order_by(models.Appointment.appointment_number.desc())
            .first()
        )
        sequence = int(latest[0][len(prefix):]) + 1 if latest else 1
        return f"{prefix}{sequence:06d}"
