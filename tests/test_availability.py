"""
Availability checker tests
"""

import random
from datetime import date, datetime, timedelta

import pytest

from app.domain.appointments.availability import (
    compute_end_time,
    find_conflict,
    is_available,
    lock_provider,
)
from app.models import STATUS_CANCELLED, STATUS_COMPLETED, STATUS_PENDING, Appointment
from app.shared.errors import NotFound, ValidationError

DAY = date(2030, 1, 15)


def at(hour, minute=0):
    return datetime(DAY.year, DAY.month, DAY.day, hour, minute)


@pytest.fixture
def book(db, customer, provider):
    def _book(start, duration=60, status=STATUS_PENDING, provider_id=None):
        appointment = Appointment(
            customer_id=customer.id,
            provider_id=provider_id or provider.id,
            date=start.date(),
            start_time=start,
            end_time=start + timedelta(minutes=duration),
            duration=duration,
            status=status,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _book


class TestHalfOpenOverlap:
    def test_touching_endpoints_do_not_overlap(self, db, provider, book):
        book(at(10), 60)
        assert find_conflict(db, provider.id, at(9), at(10)) is None
        assert find_conflict(db, provider.id, at(11), at(12)) is None

    def test_containment_overlaps(self, db, provider, book):
        existing = book(at(10), 60)
        assert find_conflict(db, provider.id, at(9), at(12)).id == existing.id
        assert find_conflict(db, provider.id, at(10, 15), at(10, 45)).id == existing.id

    def test_randomised_pairs_match_minute_sets(self, db, provider, book):
        """The overlap query agrees with a brute-force comparison of booked minutes"""
        rng = random.Random(1234)
        base = at(0)
        for _ in range(200):
            s1, s2 = rng.randint(0, 600), rng.randint(0, 600)
            d1, d2 = rng.randint(1, 120), rng.randint(1, 120)
            existing = book(base + timedelta(minutes=s1), d1)

            expected = bool(set(range(s1, s1 + d1)) & set(range(s2, s2 + d2)))
            start = base + timedelta(minutes=s2)
            conflict = find_conflict(db, provider.id, start, start + timedelta(minutes=d2))

            assert (conflict is not None) is expected
            db.delete(existing)
            db.commit()


class TestIsAvailable:
    def test_empty_calendar_is_available(self, db, provider):
        assert is_available(db, provider.id, DAY, at(9), 60)

    def test_overlap_is_unavailable(self, db, provider, book):
        book(at(10), 60)
        assert not is_available(db, provider.id, DAY, at(10, 30), 60)
        assert not is_available(db, provider.id, DAY, at(9, 30), 60)

    def test_back_to_back_is_available(self, db, provider, book):
        book(at(10), 60)
        assert is_available(db, provider.id, DAY, at(11), 30)
        assert is_available(db, provider.id, DAY, at(9), 60)

    def test_cancelled_appointments_are_ignored(self, db, provider, book):
        book(at(10), 60, status=STATUS_CANCELLED)
        assert is_available(db, provider.id, DAY, at(10), 60)

    def test_completed_appointments_still_block(self, db, provider, book):
        book(at(10), 60, status=STATUS_COMPLETED)
        assert not is_available(db, provider.id, DAY, at(10, 15), 15)

    def test_other_providers_do_not_block(self, db, provider, make_user, book):
        other = make_user("provider")
        book(at(10), 60, provider_id=other.id)
        assert is_available(db, provider.id, DAY, at(10), 60)

    def test_exclude_id_skips_the_rescheduled_appointment(self, db, provider, book):
        existing = book(at(10), 60)
        assert is_available(db, provider.id, DAY, at(10, 30), 60, exclude_id=existing.id)

    def test_overnight_booking_conflicts_next_morning(self, db, provider, book):
        book(at(23, 30), 120)  # runs until 01:30 next day
        next_day = DAY + timedelta(days=1)
        start = datetime(next_day.year, next_day.month, next_day.day, 1, 0)
        assert not is_available(db, provider.id, next_day, start, 30)

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_rejected(self, db, provider, duration):
        with pytest.raises(ValidationError):
            is_available(db, provider.id, DAY, at(9), duration)

    def test_start_must_fall_on_date(self, db, provider):
        with pytest.raises(ValidationError):
            is_available(db, provider.id, DAY + timedelta(days=1), at(9), 30)

    def test_randomised_bookings_never_overlap(self, db, provider, book):
        """Only slots that pass the check are booked; the calendar stays conflict-free"""
        rng = random.Random(42)
        for _ in range(60):
            start = at(0) + timedelta(minutes=15 * rng.randint(0, 90))
            duration = 15 * rng.randint(1, 8)
            if is_available(db, provider.id, start.date(), start, duration):
                book(start, duration)

        booked = db.query(Appointment).filter(Appointment.provider_id == provider.id).all()
        assert booked
        for i, a in enumerate(booked):
            for b in booked[i + 1 :]:
                assert not (a.start_time < b.end_time and b.start_time < a.end_time)


class TestHelpers:
    def test_compute_end_time(self):
        assert compute_end_time(at(9), 90) == at(10, 30)

    def test_compute_end_time_rejects_missing_duration(self):
        with pytest.raises(ValidationError):
            compute_end_time(at(9), None)

    def test_find_conflict_returns_earliest(self, db, provider, book):
        first = book(at(9), 60)
        book(at(10), 60)
        assert find_conflict(db, provider.id, at(8), at(12)).id == first.id

    def test_lock_provider_missing(self, db):
        with pytest.raises(NotFound):
            lock_provider(db, 9999)
