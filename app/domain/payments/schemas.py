"""Payment domain schemas - Pydantic models for validation"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from .fees import PaymentSplit


class PaymentInitRequest(BaseModel):
    appointmentId: int


class PaymentInitResponse(BaseModel):
    authorizationUrl: str
    accessCode: Optional[str] = None
    reference: str
    split: PaymentSplit


class PaymentVerifyRequest(BaseModel):
    reference: str

    @field_validator("reference")
    @classmethod
    def validate_reference(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("reference is required")
        return v


class PaymentVerifyResponse(BaseModel):
    reference: str
    paymentStatus: str
    gatewayStatus: Optional[str] = None
    settled: bool


class SubaccountRequest(BaseModel):
    businessName: str
    settlementBank: str
    accountNumber: str

    @field_validator("businessName", "settlementBank", "accountNumber")
    @classmethod
    def validate_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("field is required")
        return v


class SubaccountResponse(BaseModel):
    subaccountCode: str
    percentageCharge: Decimal


class WebhookAck(BaseModel):
    received: bool = True
    settled: bool = False
