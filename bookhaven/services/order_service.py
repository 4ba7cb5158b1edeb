import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from bookhaven.config import settings
from bookhaven.constants.order_status import OrderStatus, PaymentStatus
from bookhaven.exceptions import (
    OrderNotFound,
    OrderPersistenceFailed,
    Unauthorized,
    ValidationError,
)
from bookhaven.models.order import Order
from bookhaven.models.rented_book import RentedBook
from bookhaven.models.user import User
from bookhaven.notifications import OrderEvent, dispatch_event
from bookhaven.schemas.orders_schemas import DownloadableBook, RentedBookOut
from bookhaven.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)


def _require_admin(actor: Optional[User], action: str) -> None:
    if actor is None or not actor.is_admin:
        raise Unauthorized(f"Admin access required to {action}")


def _require_owner_or_admin(order: Order, requester: Optional[User]) -> None:
    if requester is None:
        raise Unauthorized("Sign in to view orders")
    if not requester.is_admin and order.shopper_id != requester.id:
        raise Unauthorized("You do not have access to this order")


def _load(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise OrderNotFound(f"Order {order_id} not found")
    return order


def create_order(
    session: Session,
    shopper_id: str,
    shopper_email: str,
    shopper_name: str,
    books: Sequence[RentedBookOut],
    total_amount: float,
    delivery_address: str,
    payment_reference: Optional[str] = None,
) -> Order:
    """
    Record a paid order.

    Payment is captured before this is called, so the order starts out
    ``pending`` with ``payment_status = completed``. The order row and its
    rented-book rows are committed together or not at all.
    """
    if not shopper_id:
        raise ValidationError("User ID is required", fields=["shopper_id"])
    if not books:
        raise ValidationError("No books selected", fields=["books"])

    # one payment, one order
    if payment_reference:
        existing = session.exec(
            select(Order).where(Order.payment_reference == payment_reference)
        ).first()
        if existing:
            logger.warning(f"Order {existing.id} already recorded for payment {payment_reference}")
            return existing

    created_at = datetime.now(timezone.utc)
    order = Order(
        shopper_id=shopper_id,
        shopper_email=shopper_email,
        shopper_name=shopper_name,
        total_amount=total_amount,
        delivery_address=delivery_address,
        status=OrderStatus.pending,
        payment_status=PaymentStatus.completed,
        payment_reference=payment_reference,
        created_at=created_at,
        return_due_date=created_at + timedelta(days=settings.return_window_days),
    )
    # copies, so later catalog changes never reach a placed order
    order.books = [RentedBook(**book.model_dump()) for book in books]

    try:
        session.add(order)
        session.flush()
        log_order_event(
            session,
            order_id=order.id,
            event_type=OrderEvent.ORDER_PLACED.value,
            label="Order placed",
            created_by=shopper_id,
            meta={"payment_reference": payment_reference, "total_amount": total_amount},
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to create order for {shopper_id}: {e}")
        raise OrderPersistenceFailed("Failed to create order") from e

    session.refresh(order)
    logger.info(f"Order {order.id} created for {shopper_id} ({len(books)} books, total {total_amount})")

    dispatch_event(
        event=OrderEvent.ORDER_PLACED,
        message="Order placed successfully!",
        related_id=order.id,
        extra={"admin_content": f"Order #{order.id} placed by {shopper_email}"},
    )
    return order


def update_status(session: Session, order_id: int, new_status: OrderStatus, actor: Optional[User]) -> Order:
    _require_admin(actor, "update order status")
    new_status = OrderStatus(new_status)
    order = _load(session, order_id)

    old_status = order.status
    order.status = new_status
    order.updated_at = datetime.now(timezone.utc)
    session.add(order)
    log_order_event(
        session,
        order_id=order.id,
        event_type=OrderEvent.STATUS_CHANGED.value,
        label=f"Status changed from {old_status.value} to {new_status.value}",
        created_by=actor.id,
        meta={"old_status": old_status.value, "new_status": new_status.value},
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} status {old_status.value} -> {new_status.value} by {actor.id}")
    dispatch_event(
        event=OrderEvent.STATUS_CHANGED,
        message=f"Order status updated to {new_status.value}",
        related_id=order.id,
        extra={"admin_content": f"Order #{order.id} changed from {old_status.value} to {new_status.value}"},
    )
    return order


def update_payment_status(
    session: Session, order_id: int, payment_status: PaymentStatus, actor: Optional[User]
) -> Order:
    _require_admin(actor, "update payment status")
    payment_status = PaymentStatus(payment_status)
    order = _load(session, order_id)

    old_status = order.payment_status
    order.payment_status = payment_status
    order.updated_at = datetime.now(timezone.utc)
    session.add(order)
    log_order_event(
        session,
        order_id=order.id,
        event_type=OrderEvent.PAYMENT_STATUS_CHANGED.value,
        label=f"Payment status changed from {old_status.value} to {payment_status.value}",
        created_by=actor.id,
    )
    session.commit()
    session.refresh(order)

    dispatch_event(
        event=OrderEvent.PAYMENT_STATUS_CHANGED,
        message=f"Payment status updated to {payment_status.value}",
        related_id=order.id,
    )
    return order


def get_by_id(session: Session, order_id: int, requester: Optional[User]) -> Order:
    order = _load(session, order_id)
    _require_owner_or_admin(order, requester)
    return order


def list_by_shopper(session: Session, shopper_id: str, requester: Optional[User]) -> List[Order]:
    if requester is None or (not requester.is_admin and requester.id != shopper_id):
        raise Unauthorized("You can only view your own orders")

    return session.exec(
        select(Order)
        .where(Order.shopper_id == shopper_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()


def list_all(session: Session, actor: Optional[User], status: Optional[OrderStatus] = None) -> List[Order]:
    _require_admin(actor, "list all orders")

    query = select(Order)
    if status:
        query = query.where(Order.status == OrderStatus(status))

    return session.exec(query.order_by(Order.created_at.desc(), Order.id.desc())).all()


def downloadable_books(session: Session, shopper_id: str) -> List[DownloadableBook]:
    """Books from the shopper's delivered orders, each tagged with its order id."""
    orders = session.exec(
        select(Order)
        .where(Order.shopper_id == shopper_id)
        .where(Order.status == OrderStatus.delivered)
        .order_by(Order.created_at, Order.id)
    ).all()

    return [
        DownloadableBook(
            order_id=order.id,
            book_id=b.book_id,
            title=b.title,
            author=b.author,
            cover_image=b.cover_image,
            price=b.price,
            rental_days=b.rental_days,
            total_price=b.total_price,
        )
        for order in orders
        for b in sorted(order.books, key=lambda r: r.id)
    ]
