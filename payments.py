"""Payment intent creation through Razorpay."""
import time
from abc import ABC, abstractmethod
from typing import Optional

from config import Settings, get_settings
from errors import PaymentUnavailable, StoreError
from logger import get_logger

log = get_logger("payments")


def to_minor_units(amount: float) -> int:
    """Rupees (or any 2-decimal currency) to the smallest unit, e.g. paise."""
    return int(round(float(amount) * 100))


class PaymentGateway(ABC):
    @abstractmethod
    def create_order(self, amount: float) -> dict:
        """Create a payment intent for `amount` in major units."""


class RazorpayGateway(PaymentGateway):
    def __init__(self, settings: Settings):
        # loaded on first use
        import razorpay

        self.currency = settings.currency
        self.client = razorpay.Client(auth=(settings.razorpay_key_id, settings.razorpay_key_secret))

    def create_order(self, amount: float) -> dict:
        options = {
            "amount": to_minor_units(amount),
            "currency": self.currency,
            "receipt": f"receipt_{int(time.time() * 1000)}",
        }
        try:
            return self.client.order.create(data=options)
        except Exception as e:
            log.error(f"Razorpay order creation failed: {e}")
            raise StoreError("Payment order creation failed")


_gateway: Optional[PaymentGateway] = None


def get_payment_gateway() -> PaymentGateway:
    global _gateway
    settings = get_settings()
    if not settings.razorpay_configured:
        raise PaymentUnavailable("Payment gateway not configured")
    if _gateway is None:
        _gateway = RazorpayGateway(settings)
    return _gateway
