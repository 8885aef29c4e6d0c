"""
Webhook Security Module

Signature verification for incoming payment gateway webhooks.
Paystack signs the raw request body with HMAC-SHA512 using the account's
secret key and sends the hex digest in the x-paystack-signature header.
"""

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

PAYSTACK_SIGNATURE_HEADER = "x-paystack-signature"


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha512(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA512 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def verify_paystack_signature(payload: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Verify a Paystack webhook signature.

    Args:
        payload: Raw request body bytes
        signature: Value of the x-paystack-signature header
        secret: Paystack secret key

    Returns:
        True if the signature matches
    """
    if not secret:
        logger.error("❌ Paystack secret key not configured, rejecting webhook")
        return False

    if not signature:
        logger.warning("⚠️ Paystack webhook missing signature header")
        return False

    expected = compute_hmac_sha512(secret, payload)
    if not constant_time_compare(expected, signature.strip().lower()):
        logger.warning("⚠️ Paystack webhook signature mismatch")
        return False

    return True
