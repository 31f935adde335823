from typing import Iterable, List, Optional
from datetime import datetime
from decimal import Decimal

# DTOs
from storefront.dto.catalog import PricedProduct, Product, ProductVariant
from storefront.dto.promotions import DiscountResolution, Promotion

# Validations
from storefront.validations.promotions import PromotionValidator

# Constants
from storefront.core.constants import RecordStatus

# Utils
from storefront.utils.datetime_helpers import ensure_aware, resolve_now, within_window
from storefront.utils.money import ZERO, round_currency, to_money

# Logging
from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.promotions.engine")


def _best_promotion_key(promotion: Promotion):
    # Highest percent first; ties go to the longest-running (earliest start), then id
    return (-promotion.discount_percent, ensure_aware(promotion.start_date), promotion.id)


class PromotionResolver:
    """Resolves the best campaign discount for a product price.

    The resolver holds no state: promotion lists and the clock are passed in on
    every call, so the same inputs always produce the same resolution.
    """

    def effective_promotions(self, product_id: str, promotions: Iterable[Promotion], now: datetime) -> List[Promotion]:
        """Promotions that are active, inside their window and cover the product."""
        return [p for p in promotions or [] if PromotionValidator(p, product_id, now).is_effective()]

    def select_best(self, candidates: List[Promotion]) -> Optional[Promotion]:
        if not candidates:
            return None
        return min(candidates, key=_best_promotion_key)

    def resolve_discount(self, product_id: str, unit_price, promotions: Iterable[Promotion], now: Optional[datetime] = None) -> DiscountResolution:
        """Main method to resolve the effective price of a product.

        Args:
            product_id: Identifier matched against promotion scope
            unit_price: Undiscounted unit price
            promotions: Candidate campaigns (any status; filtered here)
            now: Wall-clock instant; defaults to the shop's current time

        Returns:
            DiscountResolution with the discounted price and the applied promotion, if any
        """
        now = resolve_now(now)
        original_price = to_money(unit_price)

        candidates = self.effective_promotions(product_id, promotions, now)
        best = self.select_best(candidates)
        if best is None:
            return DiscountResolution(original_price=original_price, discounted_price=original_price)

        discount_percent = best.discount_percent
        discounted_price = round_currency(original_price * (1 - discount_percent / Decimal("100")))
        discounted_price = max(ZERO, discounted_price)

        logger.debug(f"promotion_resolved | product={product_id} candidates={len(candidates)} promotion={best.id} percent={discount_percent} price={original_price}->{discounted_price}")
        return DiscountResolution(
            original_price=original_price,
            discounted_price=discounted_price,
            discount_percent=discount_percent,
            applied_promotion=best,
        )

    def price_variant(self, product: Product, variant: ProductVariant, promotions: Iterable[Promotion], now: Optional[datetime] = None) -> DiscountResolution:
        """Resolve the price of one variant; scope is matched on the parent product."""
        return self.resolve_discount(product.id, variant.price, promotions, now)

    def price_product(self, product: Product, promotions: Iterable[Promotion], now: Optional[datetime] = None) -> PricedProduct:
        resolution = self.resolve_discount(product.id, product.base_price, promotions, now)
        return PricedProduct(
            product=product,
            original_price=resolution.original_price,
            discounted_price=resolution.discounted_price,
            discount_percent=resolution.discount_percent,
            has_discount=resolution.has_discount,
            applied_promotion=resolution.applied_promotion,
        )

    def apply_promotions_to_products(self, products: Iterable[Product], promotions: Iterable[Promotion], now: Optional[datetime] = None) -> List[PricedProduct]:
        """Annotate a whole listing with resolved prices, evaluated at one instant."""
        now = resolve_now(now)
        promotions = list(promotions or [])
        priced = [self.price_product(product, promotions, now) for product in products]
        logger.info(f"promotions_applied_to_listing | products={len(priced)} promotions={len(promotions)} discounted={sum(1 for p in priced if p.has_discount)}")
        return priced


def is_promotion_active(promotion: Promotion, now: Optional[datetime] = None) -> bool:
    """Status and time window only, regardless of product scope."""
    return RecordStatus.is_active(promotion.status) and within_window(promotion.start_date, promotion.end_date, resolve_now(now))


_default_resolver = PromotionResolver()


def resolve_discount(product_id: str, unit_price, promotions: Iterable[Promotion], now: Optional[datetime] = None) -> DiscountResolution:
    return _default_resolver.resolve_discount(product_id, unit_price, promotions, now)


def apply_promotions_to_products(products: Iterable[Product], promotions: Iterable[Promotion], now: Optional[datetime] = None) -> List[PricedProduct]:
    return _default_resolver.apply_promotions_to_products(products, promotions, now)
