# -------- ADMIN ORDERS --------
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from bookhaven.constants.order_status import ALLOWED_TRANSITIONS, OrderStatus
from bookhaven.database import get_session
from bookhaven.dependencies.admin import require_admin
from bookhaven.exceptions import BookHavenError
from bookhaven.models.user import User
from bookhaven.routes.user_orders import order_out
from bookhaven.schemas.orders_schemas import PaymentStatusUpdateRequest, StatusUpdateRequest
from bookhaven.services import order_service
from bookhaven.utils.http_errors import http_error

router = APIRouter()


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = None,
    shopper_id: Optional[str] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if shopper_id:
        orders = order_service.list_by_shopper(session, shopper_id, admin)
        if status:
            orders = [o for o in orders if o.status == status]
    else:
        orders = order_service.list_all(session, admin, status=status)

    return {
        "total_items": len(orders),
        "results": [
            {
                **order_out(o).model_dump(),
                "allowed_transitions": [s.value for s in ALLOWED_TRANSITIONS[o.status]],
            }
            for o in orders
        ],
    }


@router.put("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: StatusUpdateRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    try:
        old_status = order_service.get_by_id(session, order_id, admin).status
        order = order_service.update_status(session, order_id, data.status, admin)
    except BookHavenError as e:
        raise http_error(e) from e

    return {
        "popup": {"message": f"Order status updated to {order.status.value}", "level": "success"},
        "message": "Order status updated",
        "order_id": order.id,
        "old_status": old_status,
        "new_status": order.status,
    }


@router.put("/{order_id}/payment-status")
def update_payment_status(
    order_id: int,
    data: PaymentStatusUpdateRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    try:
        order = order_service.update_payment_status(session, order_id, data.payment_status, admin)
    except BookHavenError as e:
        raise http_error(e) from e

    return {
        "message": "Payment status updated",
        "order_id": order.id,
        "payment_status": order.payment_status,
    }
