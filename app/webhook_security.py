"""
Webhook Security Module

Signature verification for payment gateway webhooks:
- Constant-time signature comparison (prevents timing attacks)
- Signature computed over the raw, unparsed request body
- Detailed logging for security auditing
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Request

from .shared.errors import SignatureError

logger = logging.getLogger(__name__)

PAYSTACK_SIGNATURE_HEADER = "x-paystack-signature"


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha512(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA512 signature of payload (hex digest)"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def verify_paystack_signature(raw_body: bytes, signature: Optional[str], secret: Optional[str]) -> None:
    """
    Verify a Paystack webhook signature.

    Paystack signs the raw body with HMAC-SHA512 using the account secret key
    and sends the hex digest in the 'x-paystack-signature' header.

    Raises:
        SignatureError: If the header is missing, the secret is not configured,
            or the signature does not match
    """
    if not secret:
        logger.error("❌ PAYSTACK_SECRET_KEY not configured, rejecting webhook")
        raise SignatureError("Webhook secret not configured")

    if not signature:
        logger.warning("🚫 Paystack webhook missing signature header")
        raise SignatureError("Missing webhook signature")

    expected_signature = compute_hmac_sha512(secret, raw_body)
    if not constant_time_compare(expected_signature, signature.strip().lower()):
        logger.warning(
            f"🚫 Paystack webhook signature mismatch (body {len(raw_body)} bytes, "
            f"received {signature[:12]}...)"
        )
        raise SignatureError("Invalid webhook signature")

    logger.debug("✅ Paystack webhook signature verified")


async def read_paystack_webhook(request: Request) -> tuple[bytes, Optional[str]]:
    """
    Read the raw body and signature header of a Paystack webhook request.
    The body must be read BEFORE any JSON parsing so the signed bytes are intact.
    """
    raw_body = await request.body()
    signature = request.headers.get(PAYSTACK_SIGNATURE_HEADER)
    logger.info(f"📥 Paystack webhook received ({len(raw_body)} bytes)")
    return raw_body, signature


def create_webhook_signature(secret: str, payload: bytes) -> str:
    """Create a Paystack-format signature for testing or replaying webhooks"""
    return compute_hmac_sha512(secret, payload)
