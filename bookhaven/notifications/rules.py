from bookhaven.notifications.events import CartEvent, OrderEvent
from bookhaven.notifications.channels import Channel


NOTIFICATION_RULES = {

    CartEvent.ITEM_ADDED: {
        Channel.POPUP_USER: "success",
    },

    CartEvent.ITEM_REMOVED: {
        Channel.POPUP_USER: "info",
    },

    CartEvent.ALREADY_IN_CART: {
        Channel.POPUP_USER: "info",
    },

    OrderEvent.ORDER_PLACED: {
        Channel.POPUP_USER: "success",
        Channel.LOG_ADMIN: True,
    },

    OrderEvent.PAYMENT_FAILED: {
        Channel.POPUP_USER: "error",
    },

    OrderEvent.ORDER_NOT_RECORDED: {
        Channel.POPUP_USER: "error",
        Channel.LOG_ADMIN: True,
    },

    OrderEvent.STATUS_CHANGED: {
        Channel.POPUP_USER: "success",
        Channel.LOG_ADMIN: True,
    },

    OrderEvent.PAYMENT_STATUS_CHANGED: {
        Channel.LOG_ADMIN: True,
    },

}
