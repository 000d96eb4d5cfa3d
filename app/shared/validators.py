"""Shared validation utilities"""

from datetime import date, datetime, time
from typing import Optional


def parse_start_time(value: str) -> time:
    """
    Parse a wall-clock start time.

    Accepts "HH:MM" and "HH:MM:SS".

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if not value or not isinstance(value, str):
        raise ValueError("startTime is required")

    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    raise ValueError("Invalid startTime format, use HH:MM")


def combine_start(day: date, start: time) -> datetime:
    """Build the naive UTC datetime an appointment starts at"""
    return datetime.combine(day, start)


def validate_duration(minutes: Optional[int]) -> int:
    """Durations must be strictly positive whole minutes"""
    if minutes is None:
        raise ValueError("duration is required")
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ValueError("duration must be a whole number of minutes")
    if minutes <= 0:
        raise ValueError("duration must be a positive number of minutes")
    return minutes
