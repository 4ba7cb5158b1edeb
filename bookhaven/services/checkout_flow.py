"""
Checkout state machine: cart -> shipping -> payment -> exit.

The flow leaves through one of two exits. ``confirmed`` means the payment
was captured and the order recorded. ``support_required`` means the
payment was captured but recording the order failed; payment is never
retried from there because a retry would charge twice.
"""
import logging
from enum import Enum
from typing import Any, Callable, List, Optional

from bookhaven.exceptions import (
    AuthenticationRequired,
    BookHavenError,
    CheckoutClosed,
    CheckoutStepError,
    EmptyCart,
    OrderPersistenceFailedPostPayment,
    PaymentCaptureFailed,
    ValidationError,
)
from bookhaven.notifications import OrderEvent, dispatch_event, popup
from bookhaven.schemas.checkout_schemas import ShippingDetails
from bookhaven.schemas.orders_schemas import RentedBookOut
from bookhaven.services.cart_store import CartStore

logger = logging.getLogger(__name__)

PLACEHOLDER_COVER = "/placeholder.svg"


class CheckoutStep(str, Enum):
    cart = "cart"
    shipping = "shipping"
    payment = "payment"
    confirmed = "confirmed"
    support_required = "support_required"


EXIT_STEPS = (CheckoutStep.confirmed, CheckoutStep.support_required)


class CheckoutFlow:
    def __init__(self, cart: CartStore, order_creator: Optional[Callable[..., Any]] = None):
        self.cart = cart
        # set per request by the caller; receives the create_order keyword arguments
        self.order_creator = order_creator

        self.step = CheckoutStep.cart
        self.shopper = None
        self.shipping: Optional[ShippingDetails] = None

        self.payment_in_flight = False
        # gateway-side id of the payment in flight, recorded by the caller
        self.gateway_reference: Optional[str] = None
        self.payment_reference: Optional[str] = None
        self.order_id: Optional[int] = None
        self.last_error: Optional[BookHavenError] = None
        self.notice: Optional[dict] = None
        self._captured = False

    @property
    def is_closed(self) -> bool:
        return self.step in EXIT_STEPS

    @property
    def allows_cart_changes(self) -> bool:
        return self.step == CheckoutStep.cart or self.is_closed

    def _ensure_open(self):
        if self.is_closed:
            raise CheckoutClosed(f"Checkout already finished ({self.step.value})")

    def _ensure_step(self, step: CheckoutStep):
        self._ensure_open()
        if self.step != step:
            raise CheckoutStepError(f"Expected checkout step {step.value}, currently {self.step.value}")

    # -------------------------
    # FORWARD TRANSITIONS
    # -------------------------
    def proceed_to_shipping(self, shopper) -> CheckoutStep:
        self._ensure_step(CheckoutStep.cart)

        if shopper is None:
            raise AuthenticationRequired("Please sign in to continue")

        if len(self.cart) == 0:
            raise EmptyCart("Your cart is empty.")

        self.shopper = shopper
        if self.shipping is None:
            self.shipping = ShippingDetails(
                full_name=getattr(shopper, "full_name", None) or "",
                address=getattr(shopper, "address", None) or "",
            )
        self.step = CheckoutStep.shipping
        return self.step

    def submit_shipping(self, details: ShippingDetails) -> CheckoutStep:
        self._ensure_step(CheckoutStep.shipping)

        missing = details.missing_fields()
        if missing:
            raise ValidationError(
                f"Missing required shipping fields: {', '.join(missing)}",
                fields=missing,
            )

        self.shipping = details
        self.step = CheckoutStep.payment
        return self.step

    def pay(self, gateway):
        self._ensure_step(CheckoutStep.payment)

        if self.payment_in_flight:
            raise CheckoutStepError("Payment already in progress")
        if len(self.cart) == 0:
            raise EmptyCart("Your cart is empty.")

        self.payment_in_flight = True
        self.last_error = None
        amount = self.cart.snapshot().total_amount

        return gateway.initiate_payment(
            amount,
            self.shopper.email,
            self.shipping.full_name,
            self.on_payment_success,
            self.on_payment_failure,
        )

    # -------------------------
    # PAYMENT CALLBACKS
    # -------------------------
    def on_payment_success(self, payment_reference: str):
        # a repeated success for an already recorded payment changes nothing
        if self.order_id is not None and payment_reference == self.payment_reference:
            return self.order_id
        if self.step == CheckoutStep.support_required and payment_reference == self.payment_reference:
            raise self.last_error
        if self.is_closed:
            # captured after the checkout already ended: charged with no order to show for it
            self._capture_without_order(payment_reference)

        self._captured = True
        self.payment_in_flight = False
        self.payment_reference = payment_reference

        books = self.build_line_snapshot()
        total = self.cart.snapshot().total_amount

        try:
            order = self.order_creator(
                shopper_id=self.shopper.id,
                shopper_email=self.shopper.email,
                shopper_name=self.shipping.full_name,
                books=books,
                total_amount=total,
                delivery_address=self.shipping.flattened(),
                payment_reference=payment_reference,
            )
        except Exception as e:
            logger.exception(f"Payment {payment_reference} captured but order not recorded")
            self._capture_without_order(
                payment_reference,
                "Payment successful but order creation failed. Please contact support.",
                cause=e,
            )

        self.cart.clear()
        self.order_id = order.id
        self.step = CheckoutStep.confirmed
        # the order service announces the placement; only the shopper popup is built here
        self.notice = popup("Order placed successfully!")
        return self.order_id

    def _capture_without_order(
        self,
        payment_reference: str,
        message: str = "Payment received after checkout finished. Please contact support.",
        cause: Optional[Exception] = None,
    ):
        self.step = CheckoutStep.support_required
        self.payment_in_flight = False
        self.last_error = OrderPersistenceFailedPostPayment(message, payment_reference=payment_reference)
        self.notice = dispatch_event(
            event=OrderEvent.ORDER_NOT_RECORDED,
            message=message,
            related_id=payment_reference,
            extra={"admin_content": f"Payment {payment_reference} by {self.shopper.email} has no order"},
        )
        raise self.last_error from cause

    def on_payment_failure(self, error: Exception):
        if self._captured:
            logger.warning(f"Ignoring payment failure after capture: {error}")
            return self.last_error

        self.payment_in_flight = False
        if isinstance(error, PaymentCaptureFailed):
            self.last_error = error
        else:
            self.last_error = PaymentCaptureFailed(str(error) or "Payment processing failed. Please try again.")
        logger.warning(f"Payment failed for {getattr(self.shopper, 'email', None)}: {self.last_error.message}")

        if not self.is_closed:
            self.step = CheckoutStep.payment
        self.notice = dispatch_event(
            event=OrderEvent.PAYMENT_FAILED,
            message=self.last_error.message,
        )
        return self.last_error

    # -------------------------
    # BACKWARD / CANCEL
    # -------------------------
    def _ensure_not_in_flight(self, action: str):
        if self.payment_in_flight:
            raise CheckoutStepError(f"Payment in progress; cannot {action} until it completes or is dismissed")

    def back(self) -> CheckoutStep:
        self._ensure_open()
        self._ensure_not_in_flight("go back")
        if self.step == CheckoutStep.payment:
            self.step = CheckoutStep.shipping
        elif self.step == CheckoutStep.shipping:
            self.step = CheckoutStep.cart
        return self.step

    def cancel(self) -> CheckoutStep:
        if self._captured:
            raise CheckoutClosed("Payment already captured; checkout can no longer be cancelled")
        self._ensure_not_in_flight("cancel")
        self.step = CheckoutStep.cart
        self.last_error = None
        return self.step

    def build_line_snapshot(self) -> List[RentedBookOut]:
        return [
            RentedBookOut(
                book_id=line.item.id,
                title=line.item.title,
                author=line.item.author_line,
                cover_image=line.item.thumbnail or PLACEHOLDER_COVER,
                price=line.item.price,
                rental_days=line.rental_days,
                total_price=line.line_total,
            )
            for line in self.cart.snapshot().lines
        ]
