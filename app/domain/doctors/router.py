"""Doctor router - FastAPI endpoints for doctors and their weekly schedule"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import AvailabilityCreate, DoctorCreate, DoctorResponse
from .service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def get_doctor_service(db: Session = Depends(get_db)) -> DoctorService:
    """Dependency injection for DoctorService"""
    return DoctorService(db)


@router.get("", response_model=list[DoctorResponse])
async def list_doctors(
    specialty: Optional[str] = Query(None),
    service: DoctorService = Depends(get_doctor_service),
):
    """List active doctors"""
    return [DoctorResponse.from_domain(d) for d in service.list_doctors(specialty)]


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(doctor_id: str, service: DoctorService = Depends(get_doctor_service)):
    return DoctorResponse.from_domain(service.get_doctor(doctor_id))


# ============================================================================
# ADMIN
# ============================================================================


@router.post("", response_model=DoctorResponse, status_code=201)
async def create_doctor(
    data: DoctorCreate,
    _admin: User = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return DoctorResponse.from_domain(service.create_doctor(data))


@router.post("/{doctor_id}/availability", response_model=DoctorResponse, status_code=201)
async def add_availability(
    doctor_id: str,
    data: AvailabilityCreate,
    _admin: User = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return DoctorResponse.from_domain(service.add_availability(doctor_id, data))


@router.delete("/{doctor_id}/availability/{availability_id}", response_model=DoctorResponse)
async def remove_availability(
    doctor_id: str,
    availability_id: str,
    _admin: User = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return DoctorResponse.from_domain(service.remove_availability(doctor_id, availability_id))


@router.post("/{doctor_id}/deactivate", response_model=DoctorResponse)
async def deactivate_doctor(
    doctor_id: str,
    _admin: User = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return DoctorResponse.from_domain(service.set_active(doctor_id, False))
