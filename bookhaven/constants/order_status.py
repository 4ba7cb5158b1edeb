from enum import Enum


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    delivered = "delivered"
    returned = "returned"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"


# Admins may move an order between any two statuses so a mistaken update
# can always be corrected.
ALLOWED_TRANSITIONS = {
    status: [other for other in OrderStatus if other != status]
    for status in OrderStatus
}
