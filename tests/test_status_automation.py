"""
Stale appointment sweep tests
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from app.models import STATUS_CANCELLED, STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_PENDING, Appointment
from app.services.status_automation import expire_stale_appointments
from app.worker import WorkerSettings, expire_stale_appointments_task

NOW = datetime(2030, 1, 15, 12, 0)


@pytest.fixture
def seed(db, customer, provider):
    def _seed(status, end):
        start = end - timedelta(minutes=30)
        appointment = Appointment(
            customer_id=customer.id,
            provider_id=provider.id,
            date=start.date(),
            start_time=start,
            end_time=end,
            duration=30,
            status=status,
        )
        db.add(appointment)
        db.commit()
        return appointment.id

    return _seed


def status_of(db, appointment_id):
    db.expire_all()
    return db.query(Appointment).filter(Appointment.id == appointment_id).one().status


class TestExpireStaleAppointments:
    def test_completes_only_active_appointments_in_the_past(self, db, seed):
        past_pending = seed(STATUS_PENDING, NOW - timedelta(minutes=1))
        past_in_progress = seed(STATUS_IN_PROGRESS, NOW - timedelta(hours=3))
        past_cancelled = seed(STATUS_CANCELLED, NOW - timedelta(hours=1))
        future_pending = seed(STATUS_PENDING, NOW + timedelta(minutes=30))
        ending_now = seed(STATUS_PENDING, NOW)

        assert expire_stale_appointments(db, NOW) == 2

        assert status_of(db, past_pending) == STATUS_COMPLETED
        assert status_of(db, past_in_progress) == STATUS_COMPLETED
        assert status_of(db, past_cancelled) == STATUS_CANCELLED
        assert status_of(db, future_pending) == STATUS_PENDING
        assert status_of(db, ending_now) == STATUS_PENDING

    def test_second_sweep_is_a_no_op(self, db, seed):
        seed(STATUS_PENDING, NOW - timedelta(minutes=5))

        assert expire_stale_appointments(db, NOW) == 1
        assert expire_stale_appointments(db, NOW) == 0

    def test_empty_database(self, db):
        assert expire_stale_appointments(db, NOW) == 0


class TestWorker:
    def test_sweep_is_scheduled_every_minute(self):
        assert expire_stale_appointments_task in WorkerSettings.functions
        job = WorkerSettings.cron_jobs[0]
        assert job.second == 0
        assert job.minute is None
        assert job.hour is None

    async def test_task_runs_sweep_in_own_session(self, db, seed):
        seed(STATUS_PENDING, datetime(2000, 1, 1, 9, 0))

        with patch("app.worker.SessionLocal", return_value=db), patch.object(db, "close"):
            result = await expire_stale_appointments_task({})

        assert result == {"expired": 1}
