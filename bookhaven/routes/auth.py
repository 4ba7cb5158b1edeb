from fastapi import APIRouter, Depends, Response

from bookhaven.dependencies.shopper import SESSION_COOKIE, get_session_key, get_shopper_sessions
from bookhaven.models.user import User
from bookhaven.services.shopper_sessions import ShopperSessions
from bookhaven.utils.token import get_current_user

router = APIRouter()


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {
        "id": current_user.id,
        "email": current_user.email,
        "full_name": current_user.full_name,
        "role": current_user.role,
    }


@router.post("/logout")
def logout(
    response: Response,
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    # session end: cart and checkout state go with it
    sessions.end(session_key)
    response.delete_cookie(SESSION_COOKIE)
    return {"message": "Logged out"}
