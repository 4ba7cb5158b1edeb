from uuid import uuid4

from fastapi import Request, Response

from bookhaven.services.payment_service import RazorpayGateway
from bookhaven.services.shopper_sessions import ShopperSessions, shopper_sessions

SESSION_COOKIE = "bookhaven_session"

_gateway = None


def get_session_key(request: Request, response: Response) -> str:
    key = request.cookies.get(SESSION_COOKIE)
    if not key:
        key = uuid4().hex
        response.set_cookie(SESSION_COOKIE, key, httponly=True, samesite="lax")
    return key


def get_shopper_sessions() -> ShopperSessions:
    return shopper_sessions


def get_payment_gateway() -> RazorpayGateway:
    global _gateway
    if _gateway is None:
        _gateway = RazorpayGateway()
    return _gateway
