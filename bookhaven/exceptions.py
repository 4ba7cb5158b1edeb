from typing import Iterable, Optional


class BookHavenError(Exception):
    """Base class for every error the rental core raises."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidPricingInput(BookHavenError):
    """Bad numeric input reached the pricing engine. Always a programming error."""


class ValidationError(BookHavenError):
    """Required shipping or order fields are missing."""

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])


class EmptyCart(ValidationError):
    pass


class Unauthorized(BookHavenError):
    """Non-admin status change, or a shopper touching someone else's order."""


class AuthenticationRequired(Unauthorized):
    pass


class OrderNotFound(BookHavenError):
    pass


class PaymentCaptureFailed(BookHavenError):
    """The gateway reported a failure or the shopper dismissed the payment."""


class OrderPersistenceFailed(BookHavenError):
    pass


class OrderPersistenceFailedPostPayment(BookHavenError):
    """
    Payment was captured but the order could not be recorded.

    Never retried: a retry would charge the shopper twice. The shopper is
    sent to support with the payment reference.
    """

    def __init__(self, message: str, payment_reference: str):
        super().__init__(message)
        self.payment_reference = payment_reference


class CheckoutStepError(BookHavenError):
    """An operation was attempted from a checkout step that does not allow it."""


class CheckoutClosed(CheckoutStepError):
    pass


class AlreadyInCart:
    """
    Notice returned (not raised) when an item is added twice.

    Adding a book that is already in the cart is a normal shopper action,
    so it is reported back instead of failing.
    """

    def __init__(self, item_id: str, title: str = ""):
        self.item_id = item_id
        self.title = title

    @property
    def message(self) -> str:
        return "This book is already in your cart"

    def __repr__(self):
        return f"AlreadyInCart(item_id={self.item_id!r})"
