"""
Webhook Security Module

Signature verification for inbound payment events:
- Constant-time signature comparison (prevents timing attacks)
- Timestamp validation (prevents replay attacks)
- Verification runs on the raw request body before any parsing

Signature header format (Stripe style):
    Payment-Signature: t=<unix timestamp>,v1=<hex HMAC-SHA256 of "<t>.<raw body>">
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

from fastapi import Request

from .config import WEBHOOK_TOLERANCE_SECONDS
from .shared.exceptions import AuthenticityError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Payment-Signature"


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_timestamp(
    timestamp: Optional[str], max_age: int = WEBHOOK_TOLERANCE_SECONDS, now: Optional[float] = None
) -> bool:
    """
    Verify webhook timestamp is within acceptable range.

    Args:
        timestamp: Unix timestamp as string
        max_age: Maximum age in seconds

    Returns:
        True if timestamp is valid, False otherwise
    """
    if not timestamp:
        return False

    try:
        webhook_time = int(timestamp)
    except (ValueError, TypeError):
        logger.warning(f"🚫 Invalid webhook timestamp format: {timestamp}")
        return False

    current_time = int(now if now is not None else time.time())
    age = abs(current_time - webhook_time)
    if age > max_age:
        logger.warning(f"🚫 Webhook timestamp too old: {age}s (max: {max_age}s)")
        return False

    return True


def parse_signature_header(header: str) -> tuple[Optional[str], list[str]]:
    """Split 't=...,v1=...,v1=...' into the timestamp and the v1 signatures"""
    timestamp = None
    signatures = []
    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1" and value:
            signatures.append(value)
    return timestamp, signatures


def verify_payment_signature(
    raw_body: bytes,
    signature_header: Optional[str],
    secret: Optional[str],
    max_age: int = WEBHOOK_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> None:
    """
    Verify a signed payment event.

    Raises:
        AuthenticityError: on any verification failure. The error carries no
            detail about the event contents.
    """
    if not secret:
        logger.error("❌ PAYMENT_WEBHOOK_SECRET not configured, rejecting payment event")
        raise AuthenticityError()

    if not signature_header:
        logger.warning("🚫 Payment webhook missing signature header")
        raise AuthenticityError()

    timestamp, signatures = parse_signature_header(signature_header)
    if not timestamp or not signatures:
        logger.warning("🚫 Payment webhook invalid signature format")
        raise AuthenticityError()

    if not verify_timestamp(timestamp, max_age=max_age, now=now):
        raise AuthenticityError()

    signed_payload = timestamp.encode("utf-8") + b"." + raw_body
    expected = compute_hmac_sha256(secret, signed_payload)

    if not any(constant_time_compare(expected, candidate) for candidate in signatures):
        logger.warning("🚫 Payment webhook signature mismatch")
        raise AuthenticityError()

    logger.debug("✅ Payment webhook signature verified")


async def verify_payment_webhook(request: Request, secret: Optional[str]) -> bytes:
    """Verify the request signature and return the raw body"""
    # Raw body BEFORE any parsing - the signature covers exact bytes
    raw_body = await request.body()
    verify_payment_signature(raw_body, request.headers.get(SIGNATURE_HEADER), secret)
    return raw_body


def create_webhook_signature(secret: str, payload: bytes, timestamp: Optional[int] = None) -> str:
    """
    Create a signature header value for outgoing or test events.

    Returns:
        Header value in 't=<timestamp>,v1=<signature>' form
    """
    timestamp = int(time.time()) if timestamp is None else timestamp
    signature = compute_hmac_sha256(secret, f"{timestamp}.".encode("utf-8") + payload)
    return f"t={timestamp},v1={signature}"
