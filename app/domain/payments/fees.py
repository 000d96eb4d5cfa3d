"""
Fee split calculation for marketplace payments.

All amounts are in the currency's native unit (e.g. 100.00 GHS). Conversion to
minor units happens only when a gateway request is built.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from pydantic import BaseModel

from ...shared.errors import InvalidAmount, ValidationError

Number = Union[int, float, str, Decimal]

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class PaymentSplit(BaseModel):
    service_amount: Decimal
    customer_fee: Decimal
    provider_cut: Decimal
    total_to_pay: Decimal
    platform_total: Decimal
    provider_net: Decimal


def _to_decimal(value: Number, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number") from None
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def _round(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_split(
    service_price: Number,
    customer_fee_percent: Number = 5,
    provider_fee_percent: Number = 5,
) -> PaymentSplit:
    """
    Split a service price into what the customer pays and who keeps what.

    customer pays ``price + price * customer%``; the platform keeps the
    customer fee plus ``price * provider%``; the provider receives the rest.

    Raises:
        InvalidAmount: price is missing or not strictly positive
        ValidationError: a fee percentage is negative
    """
    if service_price is None:
        raise InvalidAmount("Invalid service amount")
    try:
        amount = _to_decimal(service_price, "service_price")
    except ValidationError:
        raise InvalidAmount("Invalid service amount") from None
    if amount <= 0:
        raise InvalidAmount("Invalid service amount")

    customer_pct = _to_decimal(customer_fee_percent, "customer_fee_percent")
    provider_pct = _to_decimal(provider_fee_percent, "provider_fee_percent")
    if customer_pct < 0 or provider_pct < 0:
        raise ValidationError("Fee percentages cannot be negative")

    amount = _round(amount)
    customer_fee = _round(amount * customer_pct / HUNDRED)
    provider_cut = _round(amount * provider_pct / HUNDRED)
    total_to_pay = amount + customer_fee
    platform_total = customer_fee + provider_cut

    return PaymentSplit(
        service_amount=amount,
        customer_fee=customer_fee,
        provider_cut=provider_cut,
        total_to_pay=total_to_pay,
        platform_total=platform_total,
        provider_net=total_to_pay - platform_total,
    )


def to_minor_units(amount: Number) -> int:
    """Convert a native-unit amount to the gateway's integer minor unit (pesewas, kobo)"""
    value = _to_decimal(amount, "amount")
    return int((value * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
