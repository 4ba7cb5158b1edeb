import logging
from typing import Any, Callable, Dict, Optional, Tuple

import razorpay

from bookhaven.config import settings
from bookhaven.exceptions import PaymentCaptureFailed
from bookhaven.services.pricing import convert_for_display

logger = logging.getLogger(__name__)

OnSuccess = Callable[[str], Any]
OnFailure = Callable[[Exception], Any]


class RazorpayGateway:
    """
    Payment collaborator backed by Razorpay.

    ``initiate_payment`` creates a Razorpay order and parks the callbacks
    under its id. The browser completes the payment and reports back
    through ``confirm`` (signature checked here) or ``dismiss``; exactly
    one callback fires per initiated payment.
    """

    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None, client=None):
        self.key_id = key_id or settings.razorpay_key_id
        self.client = client or razorpay.Client(
            auth=(self.key_id, key_secret or settings.razorpay_key_secret)
        )
        self._pending: Dict[str, Tuple[OnSuccess, OnFailure]] = {}

    def initiate_payment(
        self,
        amount: float,
        shopper_email: str,
        shopper_name: str,
        on_success: OnSuccess,
        on_failure: OnFailure,
    ) -> Optional[Dict[str, Any]]:
        charge = convert_for_display(amount)
        try:
            gateway_order = self.client.order.create(
                {
                    "amount": int(round(charge * 100)),  # minor units
                    "currency": settings.currency,
                    "notes": {
                        "user_email": shopper_email,
                        "user_name": shopper_name,
                    },
                }
            )
        except (
            razorpay.errors.BadRequestError,
            razorpay.errors.GatewayError,
            razorpay.errors.ServerError,
        ) as e:
            logger.warning(f"Razorpay order creation failed for {shopper_email}: {e}")
            on_failure(PaymentCaptureFailed("Payment gateway failed to load"))
            return None

        self._pending[gateway_order["id"]] = (on_success, on_failure)
        logger.info(f"Razorpay order {gateway_order['id']} created for {shopper_email}")

        return {
            "razorpay_order_id": gateway_order["id"],
            "razorpay_key": self.key_id,
            "amount": charge,
            "currency": settings.currency,
            "user_email": shopper_email,
            "user_name": shopper_name,
        }

    def _take(self, gateway_order_id: str) -> Tuple[OnSuccess, OnFailure]:
        callbacks = self._pending.pop(gateway_order_id, None)
        if callbacks is None:
            raise PaymentCaptureFailed("Unknown or already completed payment")
        return callbacks

    def confirm(self, gateway_order_id: str, payment_id: str, signature: str):
        on_success, on_failure = self._take(gateway_order_id)
        try:
            self.client.utility.verify_payment_signature({
                "razorpay_order_id": gateway_order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except razorpay.errors.SignatureVerificationError:
            logger.warning(f"Signature verification failed for {gateway_order_id}")
            return on_failure(PaymentCaptureFailed("Payment verification failed"))

        return on_success(payment_id)

    def dismiss(self, gateway_order_id: str, reason: Optional[str] = None):
        _, on_failure = self._take(gateway_order_id)
        return on_failure(PaymentCaptureFailed(reason or "Payment cancelled"))
