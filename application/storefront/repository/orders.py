from typing import List, Optional

from storefront.dto.cart import OrderSummary

from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.repository.orders")


class OrdersRepository:
    """In-memory order sink; keeps finalized summaries for receipts and reports"""

    def __init__(self):
        self._orders: List[OrderSummary] = []

    async def submit(self, order: OrderSummary) -> None:
        self._orders.append(order)
        logger.info(f"order_submitted | order_code={order.order_code} total={order.total} method={order.payment_method}")

    def get_order(self, order_code: str) -> Optional[OrderSummary]:
        return next((o for o in self._orders if o.order_code == order_code), None)

    def list_orders(self) -> List[OrderSummary]:
        return list(self._orders)
