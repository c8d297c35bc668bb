"""Doctor service - Business logic for doctors and availability"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import InvalidOperationError, NotFoundError
from .aggregate import Doctor, DoctorAvailability
from .repository import DoctorRepository
from .schemas import AvailabilityCreate, DoctorCreate

logger = logging.getLogger(__name__)


class DoctorService:
    """Service layer for doctor business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorRepository()

    def list_doctors(self, specialty: Optional[str] = None) -> list[Doctor]:
        return self.repo.list_active(self.db, specialty)

    def get_doctor(self, doctor_id: str) -> Doctor:
        doctor = self.repo.get_by_id(self.db, doctor_id)
        if not doctor:
            raise NotFoundError("Doctor", doctor_id)
        return doctor

    def create_doctor(self, data: DoctorCreate) -> Doctor:
        if self.repo.get_by_email(self.db, data.email):
            raise InvalidOperationError(f"Doctor with email {data.email} already exists")

        doctor = Doctor.create(
            name=data.name,
            specialty=data.specialty,
            email=data.email,
            phone=data.phone,
            biography=data.biography,
        )
        self.repo.add(self.db, doctor)
        self.db.commit()
        logger.info(f"✅ Doctor created: {doctor.name} ({doctor.specialty})")
        return doctor

    def add_availability(self, doctor_id: str, data: AvailabilityCreate) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        window = DoctorAvailability.create(doctor.id, data.dayOfWeek, data.startTime, data.endTime)
        doctor.add_availability(window)
        self.repo.update(self.db, doctor)
        self.db.commit()
        logger.info(
            f"📅 {doctor.name} available {window.day_name} {window.start_time:%H:%M}-{window.end_time:%H:%M}"
        )
        return doctor

    def remove_availability(self, doctor_id: str, availability_id: str) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        if not any(a.id == availability_id for a in doctor.availability):
            raise NotFoundError("Availability", availability_id)
        doctor.remove_availability(availability_id)
        self.repo.update(self.db, doctor)
        self.db.commit()
        return doctor

    def set_active(self, doctor_id: str, active: bool) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        doctor.is_active = active
        self.repo.update(self.db, doctor)
        self.db.commit()
        logger.info(f"{'✅' if active else '⚠️'} Doctor {doctor.name} {'activated' if active else 'deactivated'}")
        return doctor
