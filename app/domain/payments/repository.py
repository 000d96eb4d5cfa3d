"""Payment repository - Settlement state on appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import PAYMENT_PAID, Appointment, PaymentAttempt, User


class PaymentRepository:
    """Repository for payment-related appointment updates"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(selectinload(Appointment.services))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_attempt(db: Session, reference: str) -> Optional[PaymentAttempt]:
        return db.query(PaymentAttempt).filter(PaymentAttempt.reference == reference).first()

    @staticmethod
    def get_by_reference(db: Session, reference: str) -> Optional[Appointment]:
        """Appointment for any checkout reference ever issued for it"""
        return (
            db.query(Appointment)
            .join(PaymentAttempt, PaymentAttempt.appointment_id == Appointment.id)
            .filter(PaymentAttempt.reference == reference)
            .first()
        )

    @staticmethod
    def record_attempt(
        db: Session, appointment: Appointment, reference: str, method: str, amount_minor: int
    ) -> PaymentAttempt:
        """Store a new checkout and make it the appointment's current reference"""
        attempt = PaymentAttempt(appointment_id=appointment.id, reference=reference, amount_minor=amount_minor)
        db.add(attempt)
        appointment.payment_reference = reference
        appointment.payment_method = method
        db.commit()
        db.refresh(appointment)
        return attempt

    @staticmethod
    def mark_paid(db: Session, reference: str, method: str, paid_at: datetime) -> int:
        """
        Settle a payment exactly once.

        The reference may belong to any earlier checkout of the appointment.
        Conditional update on ``payment_status != 'paid'``; a replay, or a
        second checkout paid after the first, matches no rows and leaves
        ``payment_paid_at`` untouched.

        Returns:
            int: Rows updated (0 or 1)
        """
        attempt = PaymentRepository.get_attempt(db, reference)
        if not attempt:
            return 0

        updated = (
            db.query(Appointment)
            .filter(
                Appointment.id == attempt.appointment_id,
                Appointment.payment_status != PAYMENT_PAID,
            )
            .update(
                {
                    Appointment.payment_status: PAYMENT_PAID,
                    Appointment.payment_reference: reference,
                    Appointment.payment_method: method,
                    Appointment.payment_paid_at: paid_at,
                },
                synchronize_session=False,
            )
        )
        db.commit()
        return updated

    @staticmethod
    def set_subaccount_code(db: Session, provider: User, code: str) -> User:
        provider.paystack_subaccount_code = code
        db.commit()
        db.refresh(provider)
        return provider
