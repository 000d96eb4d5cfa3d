"""Appointments domain - Booking lifecycle, availability and conflict avoidance"""

__all__ = []
