from functools import partial
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from bookhaven.database import get_session
from bookhaven.dependencies.shopper import get_payment_gateway, get_session_key, get_shopper_sessions
from bookhaven.exceptions import AuthenticationRequired, BookHavenError
from bookhaven.models.user import User
from bookhaven.routes.cart import cart_response
from bookhaven.schemas.checkout_schemas import (
    CheckoutStateOut,
    PaymentDismissRequest,
    PaymentVerifyRequest,
    ShippingDetails,
)
from bookhaven.services import order_service
from bookhaven.services.checkout_flow import CheckoutFlow, CheckoutStep
from bookhaven.services.payment_service import RazorpayGateway
from bookhaven.services.shopper_sessions import ShopperSessions
from bookhaven.utils.http_errors import http_error
from bookhaven.utils.token import get_current_user, get_optional_user

router = APIRouter()


def checkout_state(flow: CheckoutFlow) -> dict:
    state = CheckoutStateOut(
        step=flow.step.value,
        shipping=flow.shipping,
        order_id=flow.order_id,
        payment_in_flight=flow.payment_in_flight,
        error=flow.last_error.message if flow.last_error else None,
    )
    return {
        **(flow.notice or {}),
        "checkout": state,
        "cart": cart_response(flow.cart),
    }


def _own_flow(flow: CheckoutFlow, current_user: User) -> None:
    if flow.shopper is not None and flow.shopper.id != current_user.id:
        raise HTTPException(403, "This checkout belongs to another account")


@router.get("")
def get_checkout(
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    return checkout_state(sessions.checkout(session_key))


# Checkout button in Cart page

@router.post("/start")
def start_checkout(
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
    current_user: Optional[User] = Depends(get_optional_user),
):
    flow = sessions.start_checkout(session_key)
    try:
        flow.proceed_to_shipping(current_user)
    except AuthenticationRequired as e:
        # cart stays in the session; the client signs in and comes back
        raise HTTPException(
            status_code=401,
            detail={"message": e.message, "redirect": "/login"},
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except BookHavenError as e:
        raise http_error(e) from e

    return checkout_state(flow)


@router.post("/shipping")
def submit_shipping(
    data: ShippingDetails,
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
    current_user: User = Depends(get_current_user),
):
    flow = sessions.checkout(session_key)
    _own_flow(flow, current_user)
    try:
        flow.submit_shipping(data)
    except BookHavenError as e:
        raise http_error(e) from e

    return checkout_state(flow)


@router.post("/back")
def go_back(
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    flow = sessions.checkout(session_key)
    try:
        flow.back()
    except BookHavenError as e:
        raise http_error(e) from e

    return checkout_state(flow)


@router.post("/cancel")
def cancel_checkout(
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    flow = sessions.checkout(session_key)
    try:
        flow.cancel()
    except BookHavenError as e:
        raise http_error(e) from e

    return checkout_state(flow)


@router.post("/pay")
def pay(
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_user),
):
    """Create the gateway payment; the client opens Razorpay checkout with the result."""
    flow = sessions.checkout(session_key)
    _own_flow(flow, current_user)
    try:
        payment = flow.pay(gateway)
    except BookHavenError as e:
        raise http_error(e) from e

    if payment is None:
        raise http_error(flow.last_error)

    flow.gateway_reference = payment["razorpay_order_id"]
    return {**checkout_state(flow), "payment": payment}


@router.post("/verify-payment")
def verify_payment(
    payload: PaymentVerifyRequest,
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    flow = sessions.checkout(session_key)
    _own_flow(flow, current_user)

    if flow.gateway_reference != payload.razorpay_order_id:
        raise HTTPException(400, "Razorpay order mismatch")

    flow.order_creator = partial(order_service.create_order, session)
    try:
        gateway.confirm(
            payload.razorpay_order_id,
            payload.razorpay_payment_id,
            payload.razorpay_signature,
        )
    except BookHavenError as e:
        raise http_error(e) from e

    if flow.step != CheckoutStep.confirmed:
        if flow.last_error is None:
            raise HTTPException(409, "Payment was not captured")
        raise http_error(flow.last_error)

    return {
        **checkout_state(flow),
        "message": "Thank you for your order!",
        "order_id": flow.order_id,
        "confirmation_url": f"/order-confirmation?id={flow.order_id}",
    }


@router.post("/dismiss-payment")
def dismiss_payment(
    payload: PaymentDismissRequest,
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    flow = sessions.checkout(session_key)
    if flow.gateway_reference != payload.razorpay_order_id:
        raise HTTPException(400, "Razorpay order mismatch")

    try:
        gateway.dismiss(payload.razorpay_order_id, payload.reason)
    except BookHavenError as e:
        raise http_error(e) from e

    return checkout_state(flow)
