"""
Collaborator boundaries the pricing engine talks to. Anything that quacks like
these protocols (in-memory lists, the REST client) can back the engine.
"""
from typing import List, Optional, Protocol

from storefront.dto.cart import OrderSummary
from storefront.dto.catalog import Product
from storefront.dto.promotions import Promotion
from storefront.dto.vouchers import Voucher


class CatalogSource(Protocol):
    def get_product(self, product_id: str) -> Optional[Product]:
        ...


class PromotionSource(Protocol):
    async def list_active_promotions(self) -> List[Promotion]:
        ...


class VoucherSource(Protocol):
    async def get_voucher_by_code(self, code: str) -> Optional[Voucher]:
        ...

    async def increment_usage(self, voucher_id: str) -> Optional[Voucher]:
        ...


class OrderSink(Protocol):
    async def submit(self, order: OrderSummary) -> None:
        ...
