"""Appointment router - FastAPI endpoints for booking operations"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_provider, get_current_user
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationDispatcher, get_notification_dispatcher
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    ExpiryResult,
    NotificationStatusUpdate,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, dispatcher)


# ============================================================================
# LISTINGS
# ============================================================================


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(
    admin: User = Depends(get_current_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get every appointment (admin)"""
    return [AppointmentResponse.from_model(a) for a in service.get_appointments(admin)]


@router.get("/mine", response_model=list[AppointmentResponse])
async def get_my_appointments(
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments booked by the current customer"""
    return [AppointmentResponse.from_model(a) for a in service.get_customer_appointments(current_user)]


@router.get("/provider", response_model=list[AppointmentResponse])
async def get_provider_appointments(
    provider: User = Depends(get_current_provider),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments booked with the current provider"""
    return [AppointmentResponse.from_model(a) for a in service.get_provider_appointments(provider)]


@router.post("/expire", response_model=ExpiryResult)
async def expire_appointments(
    admin: User = Depends(get_current_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Run the stale appointment sweep now instead of waiting for the worker"""
    logger.info(f"🔧 Manual expiry sweep triggered by admin {admin.id}")
    return ExpiryResult(expired=service.expire_stale_appointments())


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment with a provider"""
    appointment = await service.create_appointment(data, current_user)
    return AppointmentResponse.from_model(appointment)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.get_appointment(appointment_id, current_user))


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Change status and/or reschedule an appointment"""
    appointment = await service.update_appointment(appointment_id, data, current_user)
    return AppointmentResponse.from_model(appointment)


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.delete_appointment(appointment_id, current_user)


@router.patch("/{appointment_id}/notification", response_model=AppointmentResponse)
async def update_notification_status(
    appointment_id: int,
    data: NotificationStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Mark the booking notification read or unread"""
    appointment = service.mark_notification(appointment_id, data.notificationStatus, current_user)
    return AppointmentResponse.from_model(appointment)
