from enum import Enum


class CartEvent(str, Enum):
    ITEM_ADDED = "item_added"
    ITEM_REMOVED = "item_removed"
    ALREADY_IN_CART = "already_in_cart"


class OrderEvent(str, Enum):
    ORDER_PLACED = "order_placed"
    PAYMENT_FAILED = "payment_failed"
    ORDER_NOT_RECORDED = "order_not_recorded"
    STATUS_CHANGED = "status_changed"
    PAYMENT_STATUS_CHANGED = "payment_status_changed"
