from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Appointment status values
STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"

NOTIFICATION_UNREAD = "unread"
NOTIFICATION_READ = "read"

ROLE_CUSTOMER = "customer"
ROLE_PROVIDER = "provider"
ROLE_ADMIN = "admin"


appointment_services = Table(
    "appointment_services",
    Base.metadata,
    Column("appointment_id", Integer, ForeignKey("appointments.id", ondelete="CASCADE"), primary_key=True),
    Column("provider_service_id", Integer, ForeignKey("provider_services.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(20), default=ROLE_CUSTOMER, nullable=False)  # customer, provider, admin
    # Paystack subaccount that receives the provider's share of split payments
    paystack_subaccount_code = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    services = relationship("ProviderService", back_populates="provider", cascade="all, delete-orphan")


class ProviderService(Base):
    __tablename__ = "provider_services"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    price = Column(Numeric(12, 2), nullable=False)  # native currency unit, never minor units
    duration = Column(Integer, nullable=True)  # minutes
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("User", back_populates="services")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)  # start_time + duration, kept for range queries
    duration = Column(Integer, nullable=False)  # minutes
    status = Column(String(20), default=STATUS_PENDING, nullable=False)
    payment_status = Column(String(20), default=PAYMENT_PENDING, nullable=False)
    payment_reference = Column(String(100), unique=True, nullable=True, index=True)
    payment_method = Column(String(50), nullable=True)
    payment_paid_at = Column(DateTime, nullable=True)
    notification_status = Column(String(20), default=NOTIFICATION_UNREAD, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("User", foreign_keys=[provider_id])
    services = relationship("ProviderService", secondary=appointment_services)
    payment_attempts = relationship("PaymentAttempt", back_populates="appointment", cascade="all, delete-orphan")

    __table_args__ = (
        # Overlap lookups always filter by provider and time range
        Index("ix_appointments_provider_window", "provider_id", "start_time", "end_time"),
    )


class PaymentAttempt(Base):
    """One gateway checkout started for an appointment; any of them may settle it"""

    __tablename__ = "payment_attempts"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)
    reference = Column(String(100), unique=True, nullable=False, index=True)
    amount_minor = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    appointment = relationship("Appointment", back_populates="payment_attempts")


class PlatformConfig(Base):
    __tablename__ = "platform_config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, index=True, nullable=False)
    value = Column(JSON, nullable=True)  # loosely typed: numbers, strings, lists
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(50), nullable=False)  # create, update, cancel, delete
    actor_id = Column(Integer, nullable=True)  # None for system actions
    actor_name = Column(String(255), nullable=True)
    target = Column(String(100), nullable=False)
    target_model = Column(String(100), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
