from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from bookhaven.database import get_session
from bookhaven.exceptions import BookHavenError
from bookhaven.models.order import Order
from bookhaven.models.user import User
from bookhaven.schemas.orders_schemas import DownloadableBook, OrderEventOut, OrderOut, RentedBookOut
from bookhaven.services import order_service
from bookhaven.services.order_event_service import list_order_events
from bookhaven.services.pricing import convert_for_display, format_currency
from bookhaven.utils.http_errors import http_error
from bookhaven.utils.token import get_current_user

router = APIRouter()


def order_out(order: Order) -> OrderOut:
    return OrderOut(
        id=order.id,
        shopper_id=order.shopper_id,
        shopper_email=order.shopper_email,
        shopper_name=order.shopper_name,
        books=[
            RentedBookOut(
                book_id=b.book_id,
                title=b.title,
                author=b.author,
                cover_image=b.cover_image,
                price=b.price,
                rental_days=b.rental_days,
                total_price=b.total_price,
            )
            for b in sorted(order.books, key=lambda r: r.id)
        ],
        total_amount=order.total_amount,
        display_total=format_currency(convert_for_display(order.total_amount)),
        status=order.status,
        delivery_address=order.delivery_address,
        payment_status=order.payment_status,
        payment_reference=order.payment_reference,
        created_at=order.created_at,
        updated_at=order.updated_at,
        return_due_date=order.return_due_date,
    )


# My Rentals

@router.get("/my-orders", response_model=List[OrderOut])
def my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    orders = order_service.list_by_shopper(session, current_user.id, current_user)
    return [order_out(o) for o in orders]


@router.get("/downloads", response_model=List[DownloadableBook])
def my_downloads(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return order_service.downloadable_books(session, current_user.id)


# Order Confirmation / details

@router.get("/{order_id}", response_model=OrderOut)
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        order = order_service.get_by_id(session, order_id, current_user)
    except BookHavenError as e:
        raise http_error(e) from e
    return order_out(order)


@router.get("/{order_id}/timeline", response_model=List[OrderEventOut])
def order_timeline(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        order_service.get_by_id(session, order_id, current_user)
    except BookHavenError as e:
        raise http_error(e) from e

    return [
        OrderEventOut(
            event_type=e.event_type,
            label=e.label,
            created_by=e.created_by,
            created_at=e.created_at,
            meta=e.meta,
        )
        for e in list_order_events(session, order_id)
    ]
