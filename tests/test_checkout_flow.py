import logging

import pytest

from bookhaven.exceptions import (
    AuthenticationRequired,
    CheckoutClosed,
    CheckoutStepError,
    EmptyCart,
    OrderPersistenceFailedPostPayment,
    PaymentCaptureFailed,
    ValidationError,
)
from bookhaven.schemas.checkout_schemas import REQUIRED_SHIPPING_FIELDS, ShippingDetails
from bookhaven.services import order_service
from bookhaven.services.cart_store import CartStore
from bookhaven.services.checkout_flow import CheckoutFlow, CheckoutStep

from conftest import FakeGateway


def complete_shipping(**overrides):
    values = {
        "full_name": "Asha Rao",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "state": "KA",
        "zip_code": "560001",
        "country": "India",
    }
    values.update(overrides)
    return ShippingDetails(**values)


class RecordingCreator:
    def __init__(self, cart, fail=False):
        self.cart = cart
        self.fail = fail
        self.calls = []

    def __call__(self, **kwargs):
        # the cart must still be intact while the order is being recorded
        kwargs["cart_size_at_call"] = len(self.cart)
        self.calls.append(kwargs)
        if self.fail:
            raise RuntimeError("database unavailable")

        class _Order:
            id = 42
        return _Order()


@pytest.fixture
def cart(book_a, book_b):
    cart = CartStore()
    cart.add_item(book_a, 7)
    cart.add_item(book_b, 14)
    return cart


@pytest.fixture
def flow(cart):
    return CheckoutFlow(cart, RecordingCreator(cart))


def at_payment(flow, shopper):
    flow.proceed_to_shipping(shopper)
    flow.submit_shipping(complete_shipping())
    return flow


def test_anonymous_shopper_is_sent_to_sign_in_and_keeps_cart(flow):
    with pytest.raises(AuthenticationRequired):
        flow.proceed_to_shipping(None)

    assert flow.step == CheckoutStep.cart
    assert len(flow.cart) == 2


def test_empty_cart_cannot_check_out(shopper):
    flow = CheckoutFlow(CartStore())
    with pytest.raises(EmptyCart):
        flow.proceed_to_shipping(shopper)
    assert flow.step == CheckoutStep.cart


def test_shipping_is_prefilled_from_profile(flow, shopper):
    flow.proceed_to_shipping(shopper)

    assert flow.step == CheckoutStep.shipping
    assert flow.shipping.full_name == "Asha Rao"
    assert flow.shipping.address == "12 MG Road"
    assert flow.shipping.country == "India"


@pytest.mark.parametrize("field", REQUIRED_SHIPPING_FIELDS)
def test_each_blank_required_field_blocks_payment(flow, shopper, field):
    flow.proceed_to_shipping(shopper)
    prefilled = flow.shipping

    with pytest.raises(ValidationError) as exc:
        flow.submit_shipping(complete_shipping(**{field: "   "}))

    assert exc.value.fields == [field]
    assert flow.step == CheckoutStep.shipping
    assert flow.shipping is prefilled


def test_country_is_optional(flow, shopper):
    flow.proceed_to_shipping(shopper)
    flow.submit_shipping(complete_shipping(country=""))
    assert flow.step == CheckoutStep.payment


def test_back_navigation_never_touches_cart(flow, shopper):
    at_payment(flow, shopper)

    assert flow.back() == CheckoutStep.shipping
    assert flow.back() == CheckoutStep.cart
    assert flow.back() == CheckoutStep.cart
    assert len(flow.cart) == 2
    assert flow.shipping.city == "Bengaluru"


def test_cart_changes_are_gated_during_checkout(flow, shopper):
    assert flow.allows_cart_changes
    flow.proceed_to_shipping(shopper)
    assert not flow.allows_cart_changes


def test_pay_charges_cart_total(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)

    flow.pay(gateway)

    assert gateway.calls == [{"amount": 41, "email": "asha@example.com", "name": "Asha Rao"}]
    assert flow.payment_in_flight


def test_pay_refused_outside_payment_step(flow, shopper):
    flow.proceed_to_shipping(shopper)
    with pytest.raises(CheckoutStepError):
        flow.pay(FakeGateway())


def test_second_pay_while_in_flight_is_refused(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)

    with pytest.raises(CheckoutStepError):
        flow.pay(gateway)
    assert len(gateway.calls) == 1


def test_successful_payment_records_order_once_then_clears_cart(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)

    order_id = gateway.succeed("pay_123")

    creator = flow.order_creator
    assert len(creator.calls) == 1
    call = creator.calls[0]
    assert call["payment_reference"] == "pay_123"
    assert call["cart_size_at_call"] == 2
    assert call["shopper_id"] == "shopper-1"
    assert call["total_amount"] == 41
    assert call["delivery_address"] == "Asha Rao, 12 MG Road, Bengaluru, KA 560001, India"
    assert [b.total_price for b in call["books"]] == [21, 20]
    assert call["books"][0].author == "Ursula K. Le Guin"
    assert call["books"][1].cover_image == "/placeholder.svg"

    assert order_id == 42
    assert flow.step == CheckoutStep.confirmed
    assert len(flow.cart) == 0

    # repeated success callback for the same payment does nothing
    gateway.succeed("pay_123")
    assert len(creator.calls) == 1


def test_success_with_real_order_service(session, shopper, cart, caplog):
    from functools import partial

    caplog.set_level(logging.INFO, logger="bookhaven.notifications.dispatcher")
    flow = CheckoutFlow(cart, partial(order_service.create_order, session))
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)

    order_id = gateway.succeed("pay_123")

    order = order_service.get_by_id(session, order_id, shopper)
    assert order.status == "pending"
    assert order.payment_status == "completed"
    assert order.payment_reference == "pay_123"
    assert order.total_amount == 41
    assert flow.notice["popup"]["message"] == "Order placed successfully!"
    assert sum("[order_placed]" in r.getMessage() for r in caplog.records) == 1


def test_payment_failure_returns_to_payment_and_keeps_everything(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)

    error = gateway.fail(RuntimeError("card declined"))

    assert isinstance(error, PaymentCaptureFailed)
    assert flow.step == CheckoutStep.payment
    assert not flow.payment_in_flight
    assert len(flow.cart) == 2
    assert flow.shipping.zip_code == "560001"
    assert flow.order_creator.calls == []
    assert flow.notice["popup"]["level"] == "error"

    # retry is allowed
    flow.pay(gateway)
    assert len(gateway.calls) == 2


def test_order_failure_after_payment_needs_support(cart, shopper):
    flow = CheckoutFlow(cart, RecordingCreator(cart, fail=True))
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)

    with pytest.raises(OrderPersistenceFailedPostPayment) as exc:
        gateway.succeed("pay_999")

    assert exc.value.payment_reference == "pay_999"
    assert flow.step == CheckoutStep.support_required
    assert len(cart) == 2
    assert len(gateway.calls) == 1

    with pytest.raises(CheckoutClosed):
        flow.pay(gateway)
    with pytest.raises(CheckoutClosed):
        flow.cancel()
    with pytest.raises(OrderPersistenceFailedPostPayment):
        gateway.succeed("pay_999")
    assert len(flow.order_creator.calls) == 1


def test_cancel_before_pay_resets_to_cart(flow, shopper):
    at_payment(flow, shopper)

    assert flow.cancel() == CheckoutStep.cart
    assert flow.allows_cart_changes
    assert len(flow.cart) == 2


def test_cancel_while_payment_in_flight_is_refused(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)

    with pytest.raises(CheckoutStepError):
        flow.cancel()

    assert flow.step == CheckoutStep.payment
    assert flow.payment_in_flight
    assert not flow.allows_cart_changes

    # the late success records exactly what was charged
    gateway.succeed("pay_late")
    assert flow.order_creator.calls[0]["total_amount"] == gateway.calls[0]["amount"] == 41


def test_back_while_payment_in_flight_is_refused(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)

    with pytest.raises(CheckoutStepError):
        flow.back()
    with pytest.raises(CheckoutStepError):
        flow.pay(gateway)

    assert flow.step == CheckoutStep.payment
    assert len(gateway.calls) == 1


def test_dismissed_payment_releases_back_and_cancel(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)
    gateway.fail(PaymentCaptureFailed("Payment cancelled"))

    assert flow.back() == CheckoutStep.shipping
    flow.submit_shipping(complete_shipping())
    assert flow.cancel() == CheckoutStep.cart


def test_second_capture_after_confirmation_needs_support(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)
    gateway.succeed("pay_1")

    with pytest.raises(OrderPersistenceFailedPostPayment) as exc:
        gateway.succeed("pay_2")

    assert exc.value.payment_reference == "pay_2"
    assert flow.step == CheckoutStep.support_required
    assert len(flow.order_creator.calls) == 1


def test_cancel_after_capture_is_refused(flow, shopper):
    gateway = FakeGateway()
    at_payment(flow, shopper)
    flow.pay(gateway)
    gateway.succeed("pay_123")

    with pytest.raises(CheckoutClosed):
        flow.cancel()
