"""Payment service - Split payment initiation and settlement"""

import json
import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...models import PAYMENT_PAID, ROLE_PROVIDER, STATUS_CANCELLED, Appointment, User
from ...services.notification_service import NotificationDispatcher
from ...services.paystack_service import PaystackService
from ...shared.errors import GatewayError, InvalidAmount, NotFound, Unauthorized, ValidationError
from ...webhook_security import verify_paystack_signature
from ..settings.service import load_fee_settings
from .fees import PaymentSplit, compute_split, to_minor_units
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

SETTLEMENT_EVENT = "charge.success"
DEFAULT_PAYMENT_METHOD = "card"


def build_reference(appointment_id: int, now_ms: Optional[int] = None) -> str:
    """Transaction reference: ``bk_<appointmentId>_<epoch ms>``"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"bk_{appointment_id}_{now_ms}"


def appointment_amount(appointment: Appointment) -> Optional[Decimal]:
    """Sum of the booked service prices, falling back to the stored total"""
    prices = [Decimal(str(s.price)) for s in appointment.services if s.price is not None]
    if prices:
        return sum(prices, Decimal("0"))
    if appointment.total_price is not None:
        return Decimal(str(appointment.total_price))
    return None


class PaymentService:
    """Service layer for payment initiation and settlement"""

    def __init__(self, db: Session, gateway: PaystackService, dispatcher: NotificationDispatcher):
        self.db = db
        self.repo = PaymentRepository()
        self.gateway = gateway
        self.dispatcher = dispatcher

    def preview_split(self, amount) -> PaymentSplit:
        """Split for an amount under the current platform fee settings"""
        settings = load_fee_settings(self.db)
        return compute_split(amount, settings.customer_fee_percent, settings.provider_fee_percent)

    def _next_reference(self, appointment_id: int) -> str:
        now_ms = int(time.time() * 1000)
        reference = build_reference(appointment_id, now_ms)
        while self.repo.get_attempt(self.db, reference):
            now_ms += 1
            reference = build_reference(appointment_id, now_ms)
        return reference

    async def initiate_payment(self, appointment_id: int, requester: User) -> dict:
        """
        Start a gateway transaction for an appointment.

        When the provider has a payout subaccount the gateway splits the
        charge: the platform keeps ``platform_total`` as a flat transaction
        charge and the rest settles to the provider.

        Calling this again opens a fresh checkout. Earlier references stay
        recorded, so whichever checkout the customer completes settles the
        appointment.
        """
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFound("Appointment not found")
        if appointment.customer_id != requester.id:
            logger.warning(f"⚠️ User {requester.id} tried to pay for appointment {appointment_id}")
            raise Unauthorized("Only the customer who booked can pay for this appointment")
        if appointment.payment_status == PAYMENT_PAID:
            raise ValidationError("Appointment is already paid")
        if appointment.status == STATUS_CANCELLED:
            raise ValidationError("Cannot pay for a cancelled appointment")

        amount = appointment_amount(appointment)
        if amount is None or amount <= 0:
            raise InvalidAmount("Invalid service amount")

        email = appointment.customer.email if appointment.customer else None
        if not email:
            raise ValidationError("Customer email is required for payment")

        settings = load_fee_settings(self.db)
        split = compute_split(amount, settings.customer_fee_percent, settings.provider_fee_percent)
        reference = self._next_reference(appointment.id)
        subaccount = appointment.provider.paystack_subaccount_code if appointment.provider else None
        if not subaccount:
            logger.warning(
                f"⚠️ Provider {appointment.provider_id} has no payout subaccount, "
                f"appointment {appointment.id} settles to the main account"
            )

        logger.info(
            f"💳 Initiating payment for appointment {appointment.id}: "
            f"total={split.total_to_pay} platform={split.platform_total} ref={reference}"
        )
        data = await self.gateway.initialize_transaction(
            email=email,
            amount_minor=to_minor_units(split.total_to_pay),
            reference=reference,
            callback_url=f"{FRONTEND_URL}/payment/verify?reference={reference}",
            subaccount=subaccount,
            transaction_charge=to_minor_units(split.platform_total) if subaccount else None,
            metadata={
                "appointmentId": appointment.id,
                "customerId": appointment.customer_id,
                "providerId": appointment.provider_id,
            },
        )

        self.repo.record_attempt(
            self.db, appointment, reference, DEFAULT_PAYMENT_METHOD, to_minor_units(split.total_to_pay)
        )

        return {
            "authorizationUrl": data["authorization_url"],
            "accessCode": data.get("access_code"),
            "reference": reference,
            "split": split,
        }

    def _settle(self, reference: str, method: Optional[str], source: str) -> bool:
        """Shared pending -> paid transition for verify and webhook paths"""
        updated = self.repo.mark_paid(self.db, reference, method or DEFAULT_PAYMENT_METHOD, datetime.utcnow())
        if updated:
            logger.info(f"✅ Payment {reference} settled via {source}")
        else:
            logger.info(f"ℹ️ Payment {reference} already settled, {source} ignored")
        return bool(updated)

    async def verify_payment(self, reference: str) -> dict:
        """Confirm a transaction with the gateway and settle it if successful"""
        appointment = self.repo.get_by_reference(self.db, reference)
        if not appointment:
            raise NotFound("Payment reference not found")

        data = await self.gateway.verify_transaction(reference)
        gateway_status = data.get("status")

        settled = False
        if gateway_status == "success":
            settled = self._settle(reference, data.get("channel"), "verify")
        else:
            logger.info(f"ℹ️ Payment {reference} not successful yet (gateway status: {gateway_status})")

        self.db.refresh(appointment)
        return {
            "reference": reference,
            "paymentStatus": appointment.payment_status,
            "gatewayStatus": gateway_status,
            "settled": settled,
        }

    def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> dict:
        """
        Process a signed gateway event.

        Only a bad signature is rejected; everything else is acknowledged so
        the gateway stops retrying.
        """
        verify_paystack_signature(raw_body, signature, self.gateway.secret_key)

        try:
            event = json.loads(raw_body)
        except ValueError:
            logger.warning("⚠️ Paystack webhook body is not valid JSON, acknowledging")
            return {"received": True, "settled": False}

        event_type = event.get("event") if isinstance(event, dict) else None
        if event_type != SETTLEMENT_EVENT:
            logger.info(f"ℹ️ Ignoring Paystack event: {event_type}")
            return {"received": True, "settled": False}

        data = event.get("data")
        if not isinstance(data, dict):
            data = {}
        reference = data.get("reference")
        if not reference or not self.repo.get_by_reference(self.db, reference):
            logger.warning(f"⚠️ Paystack webhook for unknown reference: {reference}")
            return {"received": True, "settled": False}

        settled = self._settle(reference, data.get("channel"), "webhook")
        return {"received": True, "settled": settled}

    async def create_provider_subaccount(
        self,
        provider: User,
        business_name: str,
        settlement_bank: str,
        account_number: str,
    ) -> dict:
        """Create (or update) the provider's payout subaccount"""
        if provider.role != ROLE_PROVIDER:
            raise Unauthorized("Only providers can register a payout account")

        settings = load_fee_settings(self.db)
        percentage_charge = float(settings.commission_percent)

        if provider.paystack_subaccount_code:
            data = await self.gateway.update_subaccount(
                provider.paystack_subaccount_code,
                business_name=business_name,
                settlement_bank=settlement_bank,
                account_number=account_number,
                percentage_charge=percentage_charge,
            )
            code = data.get("subaccount_code") or provider.paystack_subaccount_code
            action = "update"
        else:
            data = await self.gateway.create_subaccount(
                business_name=business_name,
                settlement_bank=settlement_bank,
                account_number=account_number,
                percentage_charge=percentage_charge,
            )
            code = data.get("subaccount_code")
            if not code:
                logger.error(f"❌ Paystack subaccount response missing subaccount_code: {data}")
                raise GatewayError("Payment gateway did not return a subaccount code")
            action = "create"

        self.repo.set_subaccount_code(self.db, provider, code)
        self.dispatcher.audit(
            self.db, action, provider, provider.id, "Subaccount", f"Payout subaccount {code} ({action})"
        )
        return {"subaccountCode": code, "percentageCharge": settings.commission_percent}
