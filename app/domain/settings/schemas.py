"""Settings domain schemas - Pydantic models for validation"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, field_validator

from ...config import (
    DEFAULT_COMMISSION_PERCENT,
    DEFAULT_CUSTOMER_FEE_PERCENT,
    DEFAULT_PROVIDER_FEE_PERCENT,
)

logger = logging.getLogger(__name__)

# FeeSettings field -> platform_config key
FEE_SETTING_KEYS = {
    "commission_percent": "commissionPercent",
    "customer_fee_percent": "customerFeePercent",
    "provider_fee_percent": "providerFeePercent",
}


def parse_percent(value: Any) -> Decimal:
    """
    Coerce a loosely typed percentage (5, 5.0, "5", "5%") to Decimal.

    Raises:
        ValueError: If the value is not a finite number between 0 and 100
    """
    if isinstance(value, bool):
        raise ValueError("percentage must be a number")
    try:
        percent = Decimal(str(value).strip().rstrip("%"))
    except (InvalidOperation, ValueError):
        raise ValueError(f"invalid percentage: {value!r}") from None
    if not percent.is_finite() or percent < 0 or percent > 100:
        raise ValueError(f"percentage out of range: {value!r}")
    return percent


class FeeSettings(BaseModel):
    """Marketplace fee percentages used when a payment is initiated"""

    # Charged to the provider's payout subaccount by the gateway
    commission_percent: Decimal = Decimal(str(DEFAULT_COMMISSION_PERCENT))
    # Added on top of the service price, paid by the customer
    customer_fee_percent: Decimal = Decimal(str(DEFAULT_CUSTOMER_FEE_PERCENT))
    # Deducted from the provider's share
    provider_fee_percent: Decimal = Decimal(str(DEFAULT_PROVIDER_FEE_PERCENT))

    @classmethod
    def from_stored(cls, stored: dict[str, Any]) -> "FeeSettings":
        """Build settings from raw platform_config values, falling back to defaults"""
        values = {}
        for field, key in FEE_SETTING_KEYS.items():
            raw = stored.get(key)
            if raw is None or raw == "":
                continue
            try:
                values[field] = parse_percent(raw)
            except ValueError as e:
                logger.warning(f"⚠️ Ignoring platform setting {key}={raw!r}: {e}")
        return cls(**values)


class ConfigUpdate(BaseModel):
    value: Any

    @field_validator("value")
    @classmethod
    def validate_value(cls, v):
        if v is None:
            raise ValueError("value is required")
        return v
