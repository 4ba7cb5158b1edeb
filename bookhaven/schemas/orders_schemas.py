from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from bookhaven.constants.order_status import OrderStatus, PaymentStatus


class RentedBookOut(BaseModel):
    book_id: str
    title: str
    author: str
    cover_image: str
    price: float
    rental_days: int
    total_price: float


class DownloadableBook(RentedBookOut):
    order_id: int


class OrderOut(BaseModel):
    id: int
    shopper_id: str
    shopper_email: str
    shopper_name: str
    books: List[RentedBookOut]
    total_amount: float
    display_total: str
    status: OrderStatus
    delivery_address: str
    payment_status: PaymentStatus
    payment_reference: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    return_due_date: datetime


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class PaymentStatusUpdateRequest(BaseModel):
    payment_status: PaymentStatus


class OrderEventOut(BaseModel):
    event_type: str
    label: str
    created_by: str
    created_at: datetime
    meta: Optional[dict] = None
