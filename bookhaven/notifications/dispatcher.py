import logging

from bookhaven.notifications.rules import NOTIFICATION_RULES
from bookhaven.notifications.channels import Channel

logger = logging.getLogger(__name__)


def popup(message: str, level: str = "success") -> dict:
    return {"popup": {"message": message, "level": level}}


def dispatch_event(
    *,
    event,
    message: str,
    related_id=None,
    extra: dict | None = None,
):
    """
    Central notification dispatcher.

    Returns the popup payload for the shopper (or None when the event has
    no user-facing popup) and writes admin-facing events to the log.
    """

    rules = NOTIFICATION_RULES.get(event, {})
    extra = extra or {}

    response_popup = None

    # -------------------------
    # USER POPUP
    # -------------------------
    level = rules.get(Channel.POPUP_USER)
    if level:
        response_popup = popup(message, level)

    # -------------------------
    # ADMIN LOG
    # -------------------------
    if rules.get(Channel.LOG_ADMIN):
        logger.info(
            "[%s] %s related_id=%s %s",
            event.value, extra.get("admin_content", message), related_id, extra.get("meta", ""),
        )

    return response_popup
