"""
Automated status transitions for appointments
Handles pending/in-progress → completed once an appointment's end time has passed
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.appointments.repository import AppointmentRepository

logger = logging.getLogger(__name__)


def expire_stale_appointments(db: Session, now: Optional[datetime] = None) -> int:
    """
    Complete appointments whose end time has passed while still pending or in progress.
    Run by the background worker once a minute.

    Cancelled and completed appointments are never touched. The update is a
    single statement, so a concurrent cancellation of the same row resolves
    as last-write-wins.

    Args:
        db: Database session
        now: Reference time (naive UTC); defaults to the current time

    Returns:
        int: Number of appointments transitioned
    """
    now = now or datetime.utcnow()
    try:
        count = AppointmentRepository.complete_stale_appointments(db, now)
    except Exception as e:
        logger.error(f"❌ Error expiring stale appointments: {str(e)}")
        db.rollback()
        raise

    if count:
        logger.info(f"📊 Status automation: {count} appointment(s) → completed (as of {now.isoformat()})")
    else:
        logger.debug("ℹ️ No stale appointments to expire")
    return count
