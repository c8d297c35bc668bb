"""Doctor repository - Database operations for doctors and their availability"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from ... import models
from .aggregate import Doctor, DoctorAvailability


def to_domain(row: models.Doctor) -> Doctor:
    return Doctor(
        id=row.id,
        name=row.name,
        specialty=row.specialty,
        email=row.email,
        phone=row.phone,
        biography=row.biography,
        is_active=row.is_active,
        created_at=row.created_at,
        availability=[
            DoctorAvailability(
                id=a.id,
                doctor_id=a.doctor_id,
                day_of_week=a.day_of_week,
                start_time=a.start_time,
                end_time=a.end_time,
                is_active=a.is_active,
            )
            for a in row.availability
        ],
    )


def _apply(row: models.Doctor, doctor: Doctor) -> None:
    row.name = doctor.name
    row.specialty = doctor.specialty
    row.email = doctor.email
    row.phone = doctor.phone
    row.biography = doctor.biography
    row.is_active = doctor.is_active

    existing = {a.id: a for a in row.availability}
    wanted = {a.id for a in doctor.availability}
    for availability_id, window_row in existing.items():
        if availability_id not in wanted:
            row.availability.remove(window_row)

    for window in doctor.availability:
        window_row = existing.get(window.id)
        if window_row is None:
            window_row = models.DoctorAvailability(id=window.id)
            row.availability.append(window_row)
        window_row.day_of_week = window.day_of_week
        window_row.start_time = window.start_time
        window_row.end_time = window.end_time
        window_row.is_active = window.is_active


class DoctorRepository:
    """Repository for doctor database operations"""

    @staticmethod
    def _query(db: Session):
        return db.query(models.Doctor).options(selectinload(models.Doctor.availability))

    @staticmethod
    def get_by_id(db: Session, doctor_id: str) -> Optional[Doctor]:
        row = DoctorRepository._query(db).filter(models.Doctor.id == doctor_id).first()
        return to_domain(row) if row else None

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[Doctor]:
        row = DoctorRepository._query(db).filter(models.Doctor.email == email).first()
        return to_domain(row) if row else None

    @staticmethod
    def get_names(db: Session, doctor_ids: Iterable[str]) -> dict[str, str]:
        ids = list(set(doctor_ids))
        if not ids:
            return {}
        rows = db.query(models.Doctor.id, models.Doctor.name).filter(models.Doctor.id.in_(ids)).all()
        return {doctor_id: name for doctor_id, name in rows}

    @staticmethod
    def list_active(db: Session, specialty: Optional[str] = None) -> list[Doctor]:
        query = DoctorRepository._query(db).filter(models.Doctor.is_active.is_(True))
        if specialty:
            query = query.filter(models.Doctor.specialty.ilike(f"%{specialty}%"))
        return [to_domain(r) for r in query.order_by(models.Doctor.name).all()]

    @staticmethod
    def add(db: Session, doctor: Doctor) -> Doctor:
        row = models.Doctor(id=doctor.id, created_at=doctor.created_at)
        _apply(row, doctor)
        db.add(row)
        db.flush()
        return doctor

    @staticmethod
    def update(db: Session, doctor: Doctor) -> Doctor:
        row = DoctorRepository._query(db).filter(models.Doctor.id == doctor.id).first()
        _apply(row, doctor)
        db.flush()
        return doctor
