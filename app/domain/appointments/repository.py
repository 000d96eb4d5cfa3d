"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    Appointment,
    ProviderService,
)


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(selectinload(Appointment.services))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_appointments(db: Session) -> list[Appointment]:
        """Get every appointment (admin view)"""
        return db.query(Appointment).order_by(Appointment.start_time.desc()).all()

    @staticmethod
    def get_customer_appointments(db: Session, customer_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(selectinload(Appointment.services))
            .filter(Appointment.customer_id == customer_id)
            .order_by(Appointment.created_at.desc(), Appointment.id.desc())
            .all()
        )

    @staticmethod
    def get_provider_appointments(db: Session, provider_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(selectinload(Appointment.services))
            .filter(Appointment.provider_id == provider_id)
            .order_by(Appointment.start_time.asc())
            .all()
        )

    @staticmethod
    def get_provider_services(db: Session, service_ids: list[int], provider_id: int) -> list[ProviderService]:
        """Get the requested services that belong to the provider"""
        if not service_ids:
            return []
        return (
            db.query(ProviderService)
            .filter(ProviderService.id.in_(service_ids), ProviderService.provider_id == provider_id)
            .all()
        )

    @staticmethod
    def create_appointment(db: Session, services: list[ProviderService], **appointment_data) -> Appointment:
        """Create a new appointment and commit (releases any provider lock held)"""
        appointment = Appointment(**appointment_data)
        appointment.services = list(services)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Update an appointment with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        """Hard delete; there is no tombstone"""
        db.delete(appointment)
        db.commit()

    @staticmethod
    def complete_stale_appointments(db: Session, now: datetime) -> int:
        """
        Mark pending/in-progress appointments that ended before ``now`` as completed.
        Returns the number of rows transitioned.
        """
        count = (
            db.query(Appointment)
            .filter(
                Appointment.status.in_([STATUS_PENDING, STATUS_IN_PROGRESS]),
                Appointment.end_time < now,
            )
            .update({Appointment.status: STATUS_COMPLETED}, synchronize_session=False)
        )
        db.commit()
        return count
