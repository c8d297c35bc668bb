"""Appointment router - FastAPI endpoints for booking and managing appointments"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...services.zoom_service import AppointmentZoomService, get_zoom_service
from .aggregate import AppointmentStatus
from .schemas import (
    AppointmentResponse,
    AvailableSlotsResponse,
    BookAppointmentRequest,
    CalendarDayResponse,
    CompleteAppointmentRequest,
    OverrideStatusRequest,
    RescheduleAppointmentRequest,
    StatusAuditResponse,
)
from .service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    zoom: AppointmentZoomService = Depends(get_zoom_service),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, zoom)


@router.get("/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    doctor_id: str = Query(..., alias="doctorId"),
    day: date = Query(..., alias="date"),
    duration: int = Query(60, alias="durationInMinutes", ge=15, le=240),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Open start times for a doctor on a given day"""
    return AvailableSlotsResponse(
        doctorId=doctor_id,
        day=day,
        durationInMinutes=duration,
        slots=service.available_slots(doctor_id, day, duration),
    )


@router.post("", response_model=AppointmentResponse, status_code=201)
async def book_appointment(
    data: BookAppointmentRequest,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.book(current_user, data)
    return service.to_response(appointment)


@router.get("", response_model=list[AppointmentResponse])
async def list_my_appointments(
    upcoming: bool = Query(False),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_responses(service.list_for_user(current_user, upcoming))


@router.get("/admin/all", response_model=list[AppointmentResponse])
async def list_all_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    doctor_id: Optional[str] = Query(None, alias="doctorId"),
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_responses(service.list_all(status, doctor_id))


@router.get("/admin/calendar", response_model=list[CalendarDayResponse])
async def get_calendar(
    start: date = Query(...),
    end: date = Query(...),
    doctor_id: Optional[str] = Query(None, alias="doctorId"),
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Per-day appointments and doctor availability windows"""
    return service.calendar_view(start, end, doctor_id)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_response(service.get_appointment(current_user, appointment_id))


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.cancel(current_user, appointment_id)
    return service.to_response(appointment)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: str,
    data: RescheduleAppointmentRequest,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.reschedule(current_user, appointment_id, data.newAppointmentDate)
    return service.to_response(appointment)


# ============================================================================
# ADMIN
# ============================================================================


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(
    appointment_id: str,
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_response(service.transition(appointment_id, "confirm"))


@router.post("/{appointment_id}/start", response_model=AppointmentResponse)
async def start_appointment(
    appointment_id: str,
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_response(service.transition(appointment_id, "start"))


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: str,
    data: Optional[CompleteAppointmentRequest] = None,
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    notes = data.notes if data else None
    return service.to_response(service.transition(appointment_id, "complete", notes))


@router.post("/{appointment_id}/no-show", response_model=AppointmentResponse)
async def mark_no_show(
    appointment_id: str,
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.to_response(service.transition(appointment_id, "mark_no_show"))


@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
async def override_appointment_status(
    appointment_id: str,
    data: OverrideStatusRequest,
    admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Force a status outside the normal lifecycle (audited)"""
    return service.to_response(service.override_status(admin, appointment_id, data.status, data.reason))


@router.get("/{appointment_id}/status-history", response_model=list[StatusAuditResponse])
async def get_status_history(
    appointment_id: str,
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    return [
        StatusAuditResponse(
            previousStatus=a.previous_status,
            newStatus=a.new_status,
            adminUserId=a.admin_user_id,
            reason=a.reason,
            created_at=a.created_at,
        )
        for a in service.status_history(appointment_id)
    ]
