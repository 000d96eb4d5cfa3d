"""Catalog domain schemas - Pydantic models for provider services"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


class ProviderServiceCreate(BaseModel):
    """Schema for creating a provider offering"""

    name: str
    description: Optional[str] = None
    price: Decimal
    duration: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v <= 0:
            raise ValueError("price must be greater than zero")
        return v

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        if v is not None and v <= 0:
            raise ValueError("duration must be a positive number of minutes")
        return v


class ProviderServiceResponse(BaseModel):
    id: int
    provider: int
    name: str
    description: Optional[str] = None
    price: Decimal
    duration: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, service) -> "ProviderServiceResponse":
        return cls(
            id=service.id,
            provider=service.provider_id,
            name=service.name,
            description=service.description,
            price=service.price,
            duration=service.duration,
            created_at=service.created_at,
        )
