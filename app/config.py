import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookings.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Frontend base URL for payment callbacks
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Paystack Configuration
# PAYSTACK_SECRET is accepted as an alias for older deployments
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY") or os.getenv("PAYSTACK_SECRET")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
# Amounts are sent in the currency's minor unit (pesewas for GHS, kobo for NGN)
PAYSTACK_CURRENCY = os.getenv("PAYSTACK_CURRENCY", "GHS")
PAYSTACK_TIMEOUT_SECONDS = float(os.getenv("PAYSTACK_TIMEOUT_SECONDS", "30"))

# Marketplace fee defaults (used when the platform_config table has no value)
DEFAULT_COMMISSION_PERCENT = float(os.getenv("DEFAULT_COMMISSION_PERCENT", "15"))
DEFAULT_CUSTOMER_FEE_PERCENT = float(os.getenv("DEFAULT_CUSTOMER_FEE_PERCENT", "5"))
DEFAULT_PROVIDER_FEE_PERCENT = float(os.getenv("DEFAULT_PROVIDER_FEE_PERCENT", "5"))

# Stale appointment sweep cadence (seconds past the minute the cron fires at)
EXPIRY_SWEEP_SECOND = int(os.getenv("EXPIRY_SWEEP_SECOND", "0"))
