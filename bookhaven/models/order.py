from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime, timezone

from bookhaven.constants.order_status import OrderStatus, PaymentStatus
from bookhaven.models.rented_book import RentedBook


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    shopper_id: str = Field(index=True)
    shopper_email: str
    shopper_name: str

    total_amount: float
    delivery_address: str

    status: OrderStatus = Field(default=OrderStatus.pending, index=True)
    payment_status: PaymentStatus = Field(default=PaymentStatus.pending)
    payment_reference: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    return_due_date: datetime

    books: List["RentedBook"] = Relationship(back_populates="order")
