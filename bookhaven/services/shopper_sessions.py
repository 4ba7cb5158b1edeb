import logging
from typing import Dict

from bookhaven.services.cart_store import CartRegistry, CartStore
from bookhaven.services.checkout_flow import CheckoutFlow, CheckoutStep

logger = logging.getLogger(__name__)


class ShopperSessions:
    """Cart and checkout state per shopper session, kept in memory only."""

    def __init__(self):
        self.carts = CartRegistry()
        self._flows: Dict[str, CheckoutFlow] = {}

    def cart(self, session_key: str) -> CartStore:
        return self.carts.get(session_key)

    def checkout(self, session_key: str) -> CheckoutFlow:
        flow = self._flows.get(session_key)
        if flow is None:
            flow = CheckoutFlow(self.cart(session_key))
            self._flows[session_key] = flow
        return flow

    def current_checkout(self, session_key: str):
        return self._flows.get(session_key)

    def start_checkout(self, session_key: str) -> CheckoutFlow:
        flow = self.checkout(session_key)
        # a confirmed checkout is replaced by a fresh one over the same cart;
        # support_required is kept until the session ends so the captured
        # payment is never charged again
        if flow.step == CheckoutStep.confirmed:
            flow = CheckoutFlow(self.cart(session_key))
            self._flows[session_key] = flow
        return flow

    def end(self, session_key: str) -> None:
        self.carts.discard(session_key)
        self._flows.pop(session_key, None)
        logger.info(f"Session {session_key} ended, cart discarded")


shopper_sessions = ShopperSessions()
