import hashlib
import hmac
from dataclasses import dataclass

import requests
import structlog

logger = structlog.get_logger(__name__)


@dataclass
class RazorpayConfig:
    key_id: str             # rzp_test_... / rzp_live_...
    key_secret: str         # shared secret, also the HMAC key for payment signatures
    currency: str = "INR"
    api_base: str = "https://api.razorpay.com/v1"
    timeout: int = 20

class RazorpayError(RuntimeError):
    pass


def payment_signature(key_secret: str, order_id: str, payment_id: str) -> str:
    """Hex HMAC-SHA256 of "<order_id>|<payment_id>", as Razorpay signs checkout callbacks."""
    msg = f"{order_id}|{payment_id}"
    return hmac.new(key_secret.encode("utf-8"), msg.encode("utf-8"), hashlib.sha256).hexdigest()


class RazorpayClient:
    def __init__(self, cfg: RazorpayConfig):
        self.cfg = cfg

    def request(self, method: str, path: str, payload: dict | None = None) -> dict:
        url = f"{self.cfg.api_base.rstrip('/')}{path}"
        try:
            r = requests.request(
                method=method.upper(),
                url=url,
                json=payload,
                auth=(self.cfg.key_id, self.cfg.key_secret),
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as e:
            raise RazorpayError(f"Razorpay unreachable: {e}") from e
        try:
            data = r.json() if r.text else {}
        except ValueError:
            data = {"raw": r.text}
        if r.status_code >= 400:
            err = data.get("error") if isinstance(data, dict) else None
            description = err.get("description") if isinstance(err, dict) else None
            msg = f"Razorpay {r.status_code}: {description or data}"
            if r.status_code == 401:
                msg += " (check RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET)"
            raise RazorpayError(msg)
        return data

    def create_order(self, *, amount_paise: int, receipt: str, notes: dict | None = None) -> dict:
        payload = {
            "amount": int(amount_paise),
            "currency": self.cfg.currency,
            "receipt": receipt[:40],  # Razorpay limit
            "payment_capture": 1,
        }
        if notes:
            payload["notes"] = notes
        order = self.request("POST", "/orders", payload)
        logger.info("razorpay_order_created", order_id=order.get("id"), amount=payload["amount"], receipt=payload["receipt"])
        return order

    def verify_payment_signature(self, *, order_id: str, payment_id: str, signature: str) -> bool:
        expected = payment_signature(self.cfg.key_secret, order_id, payment_id)
        return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
