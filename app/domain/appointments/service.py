"""Appointment service - Booking lifecycle and conflict avoidance"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ...models import (
    NOTIFICATION_UNREAD,
    PAYMENT_PENDING,
    ROLE_ADMIN,
    ROLE_PROVIDER,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    Appointment,
    User,
)
from ...services.notification_service import NotificationDispatcher
from ...services.status_automation import expire_stale_appointments
from ...shared.errors import NotFound, SchedulingConflict, Unauthorized, ValidationError
from ...shared.validators import combine_start, parse_start_time
from .availability import compute_end_time, is_available, lock_provider
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)

# Manual transitions; completed and cancelled are terminal
ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_IN_PROGRESS, STATUS_CANCELLED},
    STATUS_IN_PROGRESS: {STATUS_COMPLETED, STATUS_CANCELLED},
    STATUS_COMPLETED: set(),
    STATUS_CANCELLED: set(),
}
ACTIVE_STATUSES = {STATUS_PENDING, STATUS_IN_PROGRESS}


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """Return True if ``current_status -> new_status`` is an allowed manual transition"""
    return new_status in ALLOWED_TRANSITIONS.get(current_status, set())


def _display_name(user: Optional[User], fallback: str) -> str:
    if user is None:
        return fallback
    return user.name or user.email or fallback


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, dispatcher: NotificationDispatcher):
        self.db = db
        self.repo = AppointmentRepository()
        self.dispatcher = dispatcher

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _get_or_404(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFound("Appointment not found")
        return appointment

    def _get_for_actor(self, appointment_id: int, actor: User) -> Appointment:
        """Load an appointment the actor is a party to (admins see everything)"""
        appointment = self._get_or_404(appointment_id)
        if actor.role == ROLE_ADMIN:
            return appointment
        if actor.id not in (appointment.customer_id, appointment.provider_id):
            logger.warning(f"⚠️ User {actor.id} denied access to appointment {appointment_id}")
            raise Unauthorized("Not allowed to access this appointment")
        return appointment

    def get_appointment(self, appointment_id: int, actor: User) -> Appointment:
        return self._get_for_actor(appointment_id, actor)

    def get_appointments(self, actor: User) -> list[Appointment]:
        if actor.role != ROLE_ADMIN:
            raise Unauthorized("Admin access required")
        return self.repo.get_appointments(self.db)

    def get_customer_appointments(self, customer: User) -> list[Appointment]:
        return self.repo.get_customer_appointments(self.db, customer.id)

    def get_provider_appointments(self, provider: User) -> list[Appointment]:
        return self.repo.get_provider_appointments(self.db, provider.id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_appointment(self, data: AppointmentCreate, customer: User) -> Appointment:
        """Book an appointment after validating services and provider availability"""
        logger.info(f"📥 Booking request from customer {customer.id} for provider {data.provider}")

        service_ids = list(dict.fromkeys(data.providerServices))
        if not service_ids:
            raise ValidationError("At least one provider service must be selected")

        services = self.repo.get_provider_services(self.db, service_ids, data.provider)
        if len(services) != len(service_ids):
            raise ValidationError(
                "One or more selected services are invalid or do not belong to this provider."
            )

        duration = data.duration
        if duration is None:
            duration = sum(s.duration or 0 for s in services)
        start = combine_start(data.date, parse_start_time(data.startTime))
        end = compute_end_time(start, duration)
        total_price = sum((Decimal(str(s.price)) for s in services), Decimal("0"))

        # Check-then-write under the provider lock
        provider = lock_provider(self.db, data.provider)
        if provider.role != ROLE_PROVIDER:
            self.db.rollback()
            raise NotFound("Provider not found")
        if not is_available(self.db, provider.id, data.date, start, duration):
            self.db.rollback()
            raise SchedulingConflict("Provider is unavailable at the selected time.")

        appointment = self.repo.create_appointment(
            self.db,
            services,
            customer_id=customer.id,
            provider_id=provider.id,
            date=data.date,
            start_time=start,
            end_time=end,
            duration=duration,
            status=STATUS_PENDING,
            payment_status=PAYMENT_PENDING,
            notification_status=NOTIFICATION_UNREAD,
            total_price=total_price,
        )
        logger.info(f"✅ Appointment {appointment.id} booked: provider={provider.id} {start:%Y-%m-%d %H:%M}")

        customer_name = _display_name(customer, "Unknown Customer")
        provider_name = _display_name(provider, "Unknown Provider")
        self.dispatcher.audit(
            self.db,
            "create",
            customer,
            appointment.id,
            "Appointment",
            f'Customer "{customer_name}" booked appointment with "{provider_name}" for {appointment.date.isoformat()}',
        )
        await self.dispatcher.push(
            appointment.provider_id,
            "notification:new",
            {
                "id": appointment.id,
                "type": "appointment_created",
                "provider": appointment.provider_id,
                "customer": appointment.customer_id,
                "date": appointment.date.isoformat(),
                "startTime": appointment.start_time.isoformat(),
                "services": [s.id for s in services],
                "notificationStatus": appointment.notification_status,
            },
        )
        return appointment

    async def update_appointment(self, appointment_id: int, data: AppointmentUpdate, actor: User) -> Appointment:
        """Apply a status change and/or reschedule, re-checking availability when the slot moves"""
        appointment = self._get_for_actor(appointment_id, actor)

        old_status = appointment.status
        old_date = appointment.date
        old_start = appointment.start_time

        updates = {}
        new_status = data.status
        if new_status is not None and new_status != old_status:
            if not validate_status_transition(old_status, new_status):
                raise ValidationError(f"Cannot change appointment status from {old_status} to {new_status}")
            updates["status"] = new_status

        if data.date is not None or data.startTime is not None or data.duration is not None:
            target_status = updates.get("status", old_status)
            if target_status not in ACTIVE_STATUSES:
                raise ValidationError(f"Cannot reschedule a {target_status} appointment")

            new_day = data.date or appointment.date
            new_time = parse_start_time(data.startTime) if data.startTime else appointment.start_time.time()
            duration = data.duration if data.duration is not None else appointment.duration
            start = combine_start(new_day, new_time)
            end = compute_end_time(start, duration)

            lock_provider(self.db, appointment.provider_id)
            if not is_available(
                self.db, appointment.provider_id, new_day, start, duration, exclude_id=appointment.id
            ):
                self.db.rollback()
                raise SchedulingConflict("Provider is unavailable at the selected time.")
            updates.update(date=new_day, start_time=start, end_time=end, duration=duration)

        if not updates:
            return appointment

        appointment = self.repo.update_appointment(self.db, appointment, **updates)

        changes = describe_changes(
            old_status, appointment.status, old_date, appointment.date, old_start, appointment.start_time
        )
        cancelled = appointment.status == STATUS_CANCELLED and old_status != STATUS_CANCELLED
        if cancelled:
            customer_name = _display_name(appointment.customer, "Unknown Customer")
            provider_name = _display_name(appointment.provider, "Unknown Provider")
            details = (
                f'Customer "{customer_name}" cancelled appointment with "{provider_name}" '
                f"scheduled for {appointment.date.isoformat()}"
            )
            logger.info(f"🗓️ Appointment {appointment.id} cancelled, slot released")
        elif changes:
            details = f"Appointment updated: {', '.join(changes)}"
        else:
            details = "Appointment details updated"

        self.dispatcher.audit(
            self.db, "cancel" if cancelled else "update", actor, appointment.id, "Appointment", details
        )
        await self.dispatcher.push(
            appointment.provider_id,
            "notification:update",
            {
                "id": appointment.id,
                "type": "appointment_cancelled" if cancelled else "appointment_updated",
                "provider": appointment.provider_id,
                "customer": appointment.customer_id,
                "date": appointment.date.isoformat(),
                "startTime": appointment.start_time.isoformat(),
                "status": appointment.status,
                "changes": changes,
            },
        )
        return appointment

    async def update_appointment_status(self, appointment_id: int, new_status: str, actor: User) -> Appointment:
        return await self.update_appointment(appointment_id, AppointmentUpdate(status=new_status), actor)

    async def delete_appointment(self, appointment_id: int, actor: User) -> dict:
        """Hard delete an appointment; irreversible"""
        appointment = self._get_for_actor(appointment_id, actor)

        customer_name = _display_name(appointment.customer, "Unknown Customer")
        provider_name = _display_name(appointment.provider, "Unknown Provider")
        provider_id = appointment.provider_id
        customer_id = appointment.customer_id
        appointment_date = appointment.date.isoformat()

        self.repo.delete_appointment(self.db, appointment)
        logger.info(f"🗑️ Appointment {appointment_id} deleted by user {actor.id}")

        self.dispatcher.audit(
            self.db,
            "delete",
            actor,
            appointment_id,
            "Appointment",
            f'Appointment between "{customer_name}" and "{provider_name}" for {appointment_date} was deleted',
        )
        await self.dispatcher.push(
            provider_id,
            "notification:delete",
            {
                "id": appointment_id,
                "type": "appointment_deleted",
                "provider": provider_id,
                "customer": customer_id,
            },
        )
        return {"message": "Appointment deleted"}

    def mark_notification(self, appointment_id: int, notification_status: str, actor: User) -> Appointment:
        """Provider marks the booking notification read/unread"""
        appointment = self._get_or_404(appointment_id)
        if actor.role != ROLE_ADMIN and actor.id != appointment.provider_id:
            raise Unauthorized("Only the provider can update notification status")
        return self.repo.update_appointment(self.db, appointment, notification_status=notification_status)

    def expire_stale_appointments(self, now: Optional[datetime] = None) -> int:
        return expire_stale_appointments(self.db, now)


def describe_changes(old_status, new_status, old_date, new_date, old_start, new_start) -> list[str]:
    """Human-readable deltas for audit entries and notifications"""
    changes = []
    if old_status != new_status:
        changes.append(f"status: {old_status} → {new_status}")
    if old_date != new_date:
        changes.append(f"date: {old_date.isoformat()} → {new_date.isoformat()}")
    if old_start.time() != new_start.time():
        changes.append(f"time: {old_start:%H:%M} → {new_start:%H:%M}")
    return changes
