from typing import Dict, Iterable, Optional

from storefront.dto.catalog import Product

from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.repository.catalog")


class CatalogRepository:
    """Already-fetched catalog held in memory, addressed by product id"""

    def __init__(self, products: Optional[Iterable[Product]] = None):
        self._products: Dict[str, Product] = {p.id: p for p in products or []}

    def get_product(self, product_id: str) -> Optional[Product]:
        product = self._products.get(product_id)
        if product is None:
            logger.warning(f"product_not_found | product_id={product_id}")
        return product
