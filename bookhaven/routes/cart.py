from fastapi import APIRouter, Depends, HTTPException

from bookhaven.config import settings
from bookhaven.dependencies.shopper import get_session_key, get_shopper_sessions
from bookhaven.exceptions import AlreadyInCart, BookHavenError
from bookhaven.schemas.cart_schemas import CartAddRequest, CartLineOut, CartOut, CartUpdateRequest
from bookhaven.services.cart_store import CartStore
from bookhaven.services.pricing import convert_for_display, format_currency
from bookhaven.services.shopper_sessions import ShopperSessions
from bookhaven.utils.http_errors import http_error


router = APIRouter()


def cart_response(cart: CartStore) -> CartOut:
    snapshot = cart.snapshot()
    return CartOut(
        items=[
            CartLineOut(
                book_id=line.item.id,
                title=line.item.title,
                authors=list(line.item.authors),
                thumbnail=line.item.thumbnail,
                price=line.item.price,
                rental_days=line.rental_days,
                line_total=line.line_total,
                display_total=format_currency(convert_for_display(line.line_total)),
            )
            for line in snapshot.lines
        ],
        total_line_count=snapshot.total_line_count,
        total_amount=snapshot.total_amount,
        display_total=format_currency(convert_for_display(snapshot.total_amount)),
        rental_tiers=settings.rental_tiers,
    )


def _editable_cart(session_key: str, sessions: ShopperSessions) -> CartStore:
    flow = sessions.current_checkout(session_key)
    if flow is not None and not flow.allows_cart_changes:
        raise HTTPException(409, "Return to the cart to change your items")
    return sessions.cart(session_key)


# View Cart

@router.get("/")
def get_cart(
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    return cart_response(sessions.cart(session_key))


# Add to Cart

@router.post("/add")
def add_to_cart(
    data: CartAddRequest,
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    cart = _editable_cart(session_key, sessions)
    try:
        result = cart.add_item(data.book, data.rental_days)
    except BookHavenError as e:
        raise http_error(e) from e

    return {
        **(cart.last_notice or {}),
        "message": result.message if isinstance(result, AlreadyInCart) else "Added to cart",
        "already_in_cart": isinstance(result, AlreadyInCart),
        "cart": cart_response(cart),
    }


# Update Cart

@router.put("/update/{item_id}")
def update_rental_days(
    item_id: str,
    data: CartUpdateRequest,
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    cart = _editable_cart(session_key, sessions)
    try:
        cart.update_rental_days(item_id, data.rental_days)
    except BookHavenError as e:
        raise http_error(e) from e

    return {"message": "Rental period updated", "cart": cart_response(cart)}


# Remove Cart

@router.delete("/remove/{item_id}")
def remove_item(
    item_id: str,
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    cart = _editable_cart(session_key, sessions)
    cart.remove_item(item_id)
    return {
        **(cart.last_notice or {}),
        "message": "Item removed from cart",
        "cart": cart_response(cart),
    }


# Clear Cart

@router.delete("/clear")
def clear_cart(
    session_key: str = Depends(get_session_key),
    sessions: ShopperSessions = Depends(get_shopper_sessions),
):
    cart = _editable_cart(session_key, sessions)
    cart.clear()
    return {"message": "Cart cleared", "cart": cart_response(cart)}
