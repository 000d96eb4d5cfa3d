"""Availability checks - provider calendar overlap detection"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...models import STATUS_CANCELLED, Appointment, User
from ...shared.errors import NotFound, ValidationError
from ...shared.validators import validate_duration

logger = logging.getLogger(__name__)


def compute_end_time(start: datetime, duration_minutes: int) -> datetime:
    """Return start + duration, rejecting empty or negative durations"""
    try:
        validate_duration(duration_minutes)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return start + timedelta(minutes=duration_minutes)


def find_conflict(
    db: Session,
    provider_id: int,
    start: datetime,
    end: datetime,
    exclude_id: Optional[int] = None,
) -> Optional[Appointment]:
    """
    Return the first non-cancelled appointment of the provider overlapping [start, end).

    Intervals are half-open: a booking ending at 10:00 does not conflict with
    one starting at 10:00.
    """
    query = db.query(Appointment).filter(
        Appointment.provider_id == provider_id,
        Appointment.status != STATUS_CANCELLED,
        Appointment.start_time < end,
        Appointment.end_time > start,
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)
    return query.order_by(Appointment.start_time.asc()).first()


def is_available(
    db: Session,
    provider_id: int,
    day: date,
    start: datetime,
    duration_minutes: int,
    exclude_id: Optional[int] = None,
) -> bool:
    """
    Check whether a provider can take a new appointment.

    Args:
        db: Database session
        provider_id: Provider user ID
        day: Calendar date of the booking
        start: Start datetime of the booking (must fall on ``day``)
        duration_minutes: Length of the booking, strictly positive
        exclude_id: Appointment to ignore (used when rescheduling)

    Returns:
        True when no non-cancelled appointment overlaps the requested interval
    """
    end = compute_end_time(start, duration_minutes)
    if start.date() != day:
        raise ValidationError("startTime does not fall on the requested date")

    conflict = find_conflict(db, provider_id, start, end, exclude_id=exclude_id)
    if conflict:
        logger.info(
            f"⛔ Provider {provider_id} busy {start:%Y-%m-%d %H:%M}-{end:%H:%M} "
            f"(conflicts with appointment {conflict.id})"
        )
        return False
    return True


def lock_provider(db: Session, provider_id: int) -> User:
    """
    Lock the provider row for the rest of the transaction.

    Concurrent bookings for the same provider queue on this lock, so the
    overlap check and the following write behave as one step. On PostgreSQL
    this is a row lock and bookings for different providers never contend.
    On SQLite the lock is the database write lock taken by ``BEGIN IMMEDIATE``
    (see ``app.database.enable_sqlite_write_locking``).
    """
    provider = db.query(User).filter(User.id == provider_id).with_for_update().first()
    if not provider:
        raise NotFound("Provider not found")
    return provider
