"""Payments router - FastAPI endpoints for split payments"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_provider, get_current_user
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationDispatcher, get_notification_dispatcher
from ...services.paystack_service import PaystackService, get_paystack_service
from ...webhook_security import read_paystack_webhook
from .fees import PaymentSplit
from .schemas import (
    PaymentInitRequest,
    PaymentInitResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    SubaccountRequest,
    SubaccountResponse,
    WebhookAck,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(
    db: Session = Depends(get_db),
    gateway: PaystackService = Depends(get_paystack_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, gateway, dispatcher)


@router.post("/init", response_model=PaymentInitResponse)
async def initiate_payment(
    body: PaymentInitRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Start a split payment for an appointment and return the checkout URL"""
    return await service.initiate_payment(body.appointmentId, current_user)


@router.post("/verify", response_model=PaymentVerifyResponse)
async def verify_payment(
    body: PaymentVerifyRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Confirm a payment with the gateway (callback page)"""
    logger.info(f"🔎 Payment verification requested by user {current_user.id}: {body.reference}")
    return await service.verify_payment(body.reference)


@router.post("/webhook", response_model=WebhookAck)
async def paystack_webhook(request: Request, service: PaymentService = Depends(get_payment_service)):
    """
    Paystack webhook endpoint.

    The signature covers the raw body, so the body is read before parsing.
    Unauthenticated: trust comes from the signature alone.
    """
    raw_body, signature = await read_paystack_webhook(request)
    return service.handle_webhook(raw_body, signature)


@router.post("/subaccount", response_model=SubaccountResponse)
async def create_subaccount(
    body: SubaccountRequest,
    provider: User = Depends(get_current_provider),
    service: PaymentService = Depends(get_payment_service),
):
    """Register or update the provider's payout bank account"""
    return await service.create_provider_subaccount(
        provider, body.businessName, body.settlementBank, body.accountNumber
    )


@router.get("/split", response_model=PaymentSplit)
async def preview_split(
    amount: Decimal = Query(..., description="Service price in the currency's major unit"),
    service: PaymentService = Depends(get_payment_service),
):
    """Show how an amount would be split under current platform fees"""
    return service.preview_split(amount)
