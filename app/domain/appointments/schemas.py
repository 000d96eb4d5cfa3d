"""Appointment domain schemas - Pydantic models for validation"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import (
    NOTIFICATION_READ,
    NOTIFICATION_UNREAD,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
)
from ...shared.validators import parse_start_time

VALID_STATUSES = {STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_CANCELLED}


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment"""

    provider: int
    providerServices: list[int]
    date: dt.date
    startTime: str  # "HH:MM" on the given date
    duration: Optional[int] = None  # minutes; defaults to the sum of service durations

    @field_validator("providerServices", mode="before")
    @classmethod
    def ensure_list(cls, v):
        # A single id is accepted for convenience
        if v is None:
            return []
        if not isinstance(v, list):
            return [v]
        return v

    @field_validator("startTime")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        parse_start_time(v)
        return v


class AppointmentUpdate(BaseModel):
    """Schema for status changes and rescheduling"""

    status: Optional[str] = None
    date: Optional[dt.date] = None
    startTime: Optional[str] = None
    duration: Optional[int] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in VALID_STATUSES:
            raise ValueError(f"status must be one of {sorted(VALID_STATUSES)}")
        return v

    @field_validator("startTime")
    @classmethod
    def validate_start_time(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_start_time(v)
        return v


class NotificationStatusUpdate(BaseModel):
    notificationStatus: str

    @field_validator("notificationStatus")
    @classmethod
    def validate_notification_status(cls, v: str) -> str:
        if v not in {NOTIFICATION_READ, NOTIFICATION_UNREAD}:
            raise ValueError("notificationStatus must be 'read' or 'unread'")
        return v


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    customer: int
    provider: int
    providerServices: list[int]
    date: dt.date
    startTime: dt.datetime
    endTime: dt.datetime
    duration: int
    status: str
    paymentStatus: str
    paymentReference: Optional[str] = None
    paymentMethod: Optional[str] = None
    paymentPaidAt: Optional[dt.datetime] = None
    notificationStatus: str
    totalPrice: Optional[Decimal] = None
    created_at: Optional[dt.datetime] = None

    @classmethod
    def from_model(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            customer=appointment.customer_id,
            provider=appointment.provider_id,
            providerServices=[s.id for s in appointment.services],
            date=appointment.date,
            startTime=appointment.start_time,
            endTime=appointment.end_time,
            duration=appointment.duration,
            status=appointment.status,
            paymentStatus=appointment.payment_status,
            paymentReference=appointment.payment_reference,
            paymentMethod=appointment.payment_method,
            paymentPaidAt=appointment.payment_paid_at,
            notificationStatus=appointment.notification_status,
            totalPrice=appointment.total_price,
            created_at=appointment.created_at,
        )


class ExpiryResult(BaseModel):
    expired: int
