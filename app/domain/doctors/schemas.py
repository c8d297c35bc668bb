"""Doctor domain schemas - Pydantic models for validation"""

from datetime import time
from typing import Optional, Union

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone
from ...utils.sanitization import sanitize_string, validate_and_sanitize_input
from .aggregate import DAY_NAMES, Doctor, DoctorAvailability


class DoctorCreate(BaseModel):
    """Schema for creating a doctor"""

    name: str
    specialty: str
    email: str
    phone: Optional[str] = None
    biography: Optional[str] = None

    @field_validator("name", "specialty")
    @classmethod
    def clean_text(cls, v):
        v = sanitize_string(v)
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("biography")
    @classmethod
    def clean_biography(cls, v):
        return validate_and_sanitize_input(v, max_length=5000)


class AvailabilityCreate(BaseModel):
    """A weekly window. dayOfWeek accepts 0-6 (Monday = 0) or a day name."""

    dayOfWeek: Union[int, str]
    startTime: time
    endTime: time

    @field_validator("dayOfWeek")
    @classmethod
    def check_day(cls, v):
        if isinstance(v, str):
            name = v.strip().lower()
            if name.isdigit():
                v = int(name)
            elif name in DAY_NAMES:
                return DAY_NAMES.index(name)
            else:
                raise ValueError(f"Unknown day: {v}")
        if v < 0 or v > 6:
            raise ValueError("Day of week must be between 0 (Monday) and 6 (Sunday)")
        return v


class AvailabilityResponse(BaseModel):
    id: str
    dayOfWeek: int
    dayName: str
    startTime: time
    endTime: time
    isActive: bool

    @classmethod
    def from_domain(cls, window: DoctorAvailability) -> "AvailabilityResponse":
        return cls(
            id=window.id,
            dayOfWeek=window.day_of_week,
            dayName=window.day_name,
            startTime=window.start_time,
            endTime=window.end_time,
            isActive=window.is_active,
        )


class DoctorResponse(BaseModel):
    """Schema for doctor response"""

    id: str
    name: str
    specialty: str
    email: str
    phone: Optional[str] = None
    biography: Optional[str] = None
    isActive: bool
    availability: list[AvailabilityResponse]

    @classmethod
    def from_domain(cls, doctor: Doctor) -> "DoctorResponse":
        return cls(
            id=doctor.id,
            name=doctor.name,
            specialty=doctor.specialty,
            email=doctor.email,
            phone=doctor.phone,
            biography=doctor.biography,
            isActive=doctor.is_active,
            availability=[
                AvailabilityResponse.from_domain(a)
                for a in sorted(doctor.availability, key=lambda a: (a.day_of_week, a.start_time))
            ],
        )
