# bookhaven/services/order_event_service.py

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4
from sqlmodel import Session, select
from bookhaven.models.order_event import OrderEvent


def log_order_event(
    session: Session,
    order_id: int,
    event_type: str,
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
):
    """
    Append-only event log for order timeline.

    Adds to the session only; the caller commits together with the change
    the event describes.
    """

    event = OrderEvent(
        id=str(uuid4()),
        order_id=order_id,
        event_type=event_type,
        label=label,
        meta=meta,
        created_by=created_by,
        created_at=datetime.now(timezone.utc),
    )

    session.add(event)
    return event


def list_order_events(session: Session, order_id: int) -> List[OrderEvent]:
    return session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at)
    ).all()
