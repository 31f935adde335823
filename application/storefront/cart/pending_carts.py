"""
Held carts for the POS counter.

A cashier can park a customer's cart and start another one; up to
POS_MAX_PENDING_CARTS carts live side by side, each an independent
CartLedger, with exactly one of them active at a time.
"""
import random
import string
import time
from typing import Callable, Dict, List, Optional
from datetime import datetime

from storefront.cart.service import CartLedger
from storefront.config.settings import StorefrontConfigs
from storefront.core.constants import PendingCartConstants
from storefront.core.exceptions import PendingCartLimitError, PendingCartNotFoundError
from storefront.utils.datetime_helpers import get_vn_now

from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.pending_carts")

configs = StorefrontConfigs()


def generate_cart_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{PendingCartConstants.ID_PREFIX}-{int(time.time() * 1000)}-{suffix}"


def cart_name(position: int) -> str:
    return f"{PendingCartConstants.NAME_PREFIX} {position}"


class PendingCart:
    def __init__(self, cart_id: str, name: str, ledger: CartLedger, created_at: datetime):
        self.id = cart_id
        self.name = name
        self.ledger = ledger
        self.created_at = created_at
        self._touched_at = created_at

    @property
    def updated_at(self) -> datetime:
        """Latest of the registry touching the cart (rename) and the ledger changing."""
        if self.ledger.updated_at is None:
            return self._touched_at
        return max(self._touched_at, self.ledger.updated_at)

    def touch(self, now: datetime) -> None:
        self._touched_at = now


class PendingCartRegistry:
    def __init__(
        self,
        max_carts: Optional[int] = None,
        ledger_factory: Optional[Callable[[str], CartLedger]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.max_carts = max_carts if max_carts is not None else configs.POS_MAX_PENDING_CARTS
        self.ledger_factory = ledger_factory or (lambda cart_id: CartLedger(cart_id=cart_id))
        self.clock = clock or get_vn_now
        self._carts: List[PendingCart] = []
        self.active_cart_id: Optional[str] = None

    @property
    def carts(self) -> List[PendingCart]:
        return list(self._carts)

    def create_new_cart(self) -> PendingCart:
        """Open a new cart and make it the active one.

        Raises:
            PendingCartLimitError: max_carts carts are already open
        """
        if len(self._carts) >= self.max_carts:
            logger.warning(f"pending_cart_limit_reached | open={len(self._carts)} max={self.max_carts}")
            raise PendingCartLimitError(
                f"At most {self.max_carts} carts can be held at once",
                details={"max_carts": self.max_carts},
            )

        cart_id = generate_cart_id()
        cart = PendingCart(cart_id, cart_name(len(self._carts) + 1), self.ledger_factory(cart_id), self.clock())
        self._carts.append(cart)
        self.active_cart_id = cart_id
        logger.info(f"pending_cart_created | cart_id={cart_id} name={cart.name} open={len(self._carts)}")
        return cart

    def delete_cart(self, cart_id: str) -> None:
        """Drop a cart; remaining carts are renumbered in order.

        Deleting the active cart moves the focus to the first remaining one.
        """
        cart = self.get_cart(cart_id)
        self._carts.remove(cart)

        if self.active_cart_id == cart_id:
            self.active_cart_id = self._carts[0].id if self._carts else None

        now = self.clock()
        for position, remaining in enumerate(self._carts, start=1):
            remaining.name = cart_name(position)
            remaining.touch(now)
        logger.info(f"pending_cart_deleted | cart_id={cart_id} open={len(self._carts)} active={self.active_cart_id}")

    def set_active_cart(self, cart_id: str) -> PendingCart:
        cart = self.get_cart(cart_id)
        self.active_cart_id = cart.id
        return cart

    def get_active_cart(self) -> Optional[PendingCart]:
        return next((c for c in self._carts if c.id == self.active_cart_id), None)

    def get_cart(self, cart_id: str) -> PendingCart:
        cart = next((c for c in self._carts if c.id == cart_id), None)
        if cart is None:
            raise PendingCartNotFoundError(f"Cart {cart_id} not found", details={"cart_id": cart_id})
        return cart

    def clear_all_carts(self) -> None:
        self._carts = []
        self.active_cart_id = None
        logger.info("pending_carts_cleared")

    def summary(self) -> List[Dict]:
        """Tab strip data: one entry per held cart."""
        return [
            {
                "id": cart.id,
                "name": cart.name,
                "is_active": cart.id == self.active_cart_id,
                "total_items": cart.ledger.total_items,
                "total": cart.ledger.total,
                "updated_at": cart.updated_at,
            }
            for cart in self._carts
        ]
