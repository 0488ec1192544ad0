import time

import structlog

from travelify.services.razorpay_client import RazorpayClient

logger = structlog.get_logger(__name__)

PAISE_PER_RUPEE = 100


def make_receipt() -> str:
    return f"receipt_{int(time.time() * 1000)}"


def create_order(client: RazorpayClient, amount: int, notes: dict | None = None) -> dict:
    """Open a Razorpay order for `amount` rupees and return the provider's order object untouched.

    Raises RazorpayError on any provider failure; callers do not retry.
    """
    if amount <= 0:
        raise ValueError("amount must be a positive integer")
    return client.create_order(amount_paise=amount * PAISE_PER_RUPEE, receipt=make_receipt(), notes=notes)


def verify_signature(client: RazorpayClient, order_id: str, payment_id: str, signature: str) -> bool:
    ok = client.verify_payment_signature(order_id=order_id, payment_id=payment_id, signature=signature)
    if not ok:
        logger.warning("payment_signature_invalid", order_id=order_id, payment_id=payment_id)
    return ok
