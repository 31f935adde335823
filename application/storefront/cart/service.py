import uuid
from typing import Callable, Iterable, List, Optional
from datetime import datetime
from decimal import Decimal

# DTOs
from storefront.dto.catalog import Product, ProductVariant
from storefront.dto.promotions import Promotion
from storefront.dto.vouchers import Voucher, VoucherApplication
from storefront.dto.cart import CartLineItem, CartNotice, CartTotals, CartUpdate, OrderLine, OrderSummary

# Engines
from storefront.promotions.engine import PromotionResolver
from storefront.vouchers.engine import VoucherEngine

# Repository
from storefront.repository.protocols import CatalogSource, OrderSink, PromotionSource, VoucherSource
from storefront.repository.vouchers import VouchersRepository

# Validations
from storefront.validations.payments import PaymentValidator

# Constants
from storefront.core.constants import CartErrorCode

# Exceptions
from storefront.core.exceptions import (
    CapacityExceededError,
    CheckoutInProgressError,
    EmptyCartError,
    LineItemNotFoundError,
    OrderSinkError,
    ProductNotFoundError,
    VoucherBelowMinimumError,
    VoucherLookupSupersededError,
    VoucherRejectedError,
    VoucherUsageError,
)

# Context
from storefront.core.session_context import session_context

# Utils
from storefront.utils.datetime_helpers import get_vn_now
from storefront.utils.money import ZERO

# Settings
from storefront.config.settings import StorefrontConfigs
configs = StorefrontConfigs()

# Logging
from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.cart_service")


def build_line_id(product_id: str, variant_id: str) -> str:
    return f"{product_id}-{variant_id}"


def generate_order_code() -> str:
    return f"POS-{uuid.uuid4().hex[:10].upper()}"


class CartLedger:
    """Point-of-sale cart: line items, the applied voucher and checkout.

    Line prices are snapshotted when an item is added; later promotion changes
    do not touch lines already in the cart. The applied voucher is re-checked
    after every mutation and dropped with a notice when the subtotal falls
    below its minimum order value.
    """

    def __init__(
        self,
        cart_id: Optional[str] = None,
        voucher_source: Optional[VoucherSource] = None,
        order_sink: Optional[OrderSink] = None,
        resolver: Optional[PromotionResolver] = None,
        voucher_engine: Optional[VoucherEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.cart_id = cart_id or uuid.uuid4().hex
        self.voucher_source = voucher_source if voucher_source is not None else VouchersRepository()
        self.order_sink = order_sink
        self.resolver = resolver or PromotionResolver()
        self.voucher_engine = voucher_engine or VoucherEngine()
        self.clock = clock or get_vn_now

        self._lines: List[CartLineItem] = []
        self._voucher: Optional[Voucher] = None
        self._discount_amount: Decimal = ZERO
        self._voucher_attempt = 0
        self._checkout_pending = False
        self.updated_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def lines(self) -> List[CartLineItem]:
        return [line.model_copy() for line in self._lines]

    @property
    def voucher(self) -> Optional[Voucher]:
        return self._voucher

    @property
    def discount_amount(self) -> Decimal:
        return self._discount_amount

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines), ZERO)

    @property
    def total(self) -> Decimal:
        return max(ZERO, self.subtotal - self._discount_amount)

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, line_id: str) -> CartLineItem:
        return self._require_line(line_id).model_copy()

    def _require_line(self, line_id: str) -> CartLineItem:
        line = self._find_line(line_id)
        if line is None:
            raise LineItemNotFoundError(f"Line item {line_id} is not in the cart", details={"line_id": line_id})
        return line

    def totals(self) -> CartTotals:
        return CartTotals(
            subtotal=self.subtotal,
            discount_amount=self._discount_amount,
            total=self.total,
            voucher_code=self._voucher.code if self._voucher else None,
            total_items=self.total_items,
        )

    # ------------------------------------------------------------------
    # Line mutations
    # ------------------------------------------------------------------

    def add_line_item(
        self,
        product: Product,
        variant: ProductVariant,
        quantity: int = 1,
        promotions: Optional[Iterable[Promotion]] = None,
        now: Optional[datetime] = None,
    ) -> CartUpdate:
        """Add a variant to the cart, merging into an existing line for the same variant.

        The unit price is resolved against the promotions at this instant and
        kept on the line as quoted.

        Raises:
            ValueError: quantity below 1
            CapacityExceededError: resulting quantity would pass the variant stock
        """
        self._bind_context()
        self._ensure_mutable()
        if quantity < 1:
            raise ValueError(f"quantity must be at least 1, got {quantity}")

        line_id = build_line_id(product.id, variant.id)
        existing = self._find_line(line_id)
        requested = quantity + (existing.quantity if existing else 0)
        if requested > variant.stock:
            logger.warning(f"add_line_item_capacity_exceeded | line={line_id} requested={requested} stock={variant.stock}")
            raise CapacityExceededError(
                f"Only {variant.stock} units of {product.name} ({variant.color}/{variant.size}) are in stock",
                details={"line_id": line_id, "requested": requested, "stock": variant.stock},
            )

        if existing:
            existing.stock = variant.stock
            existing.quantity = requested
            line = existing
            logger.info(f"line_item_merged | line={line_id} quantity={requested}")
        else:
            resolution = self.resolver.price_variant(product, variant, promotions or [], now or self.clock())
            line = CartLineItem(
                id=line_id,
                product_id=product.id,
                variant_id=variant.id,
                quantity=quantity,
                unit_price=resolution.discounted_price,
                original_price=resolution.original_price,
                discount_percent=resolution.discount_percent,
                has_discount=resolution.has_discount,
                applied_promotion_id=resolution.applied_promotion.id if resolution.applied_promotion else None,
                stock=variant.stock,
                name=product.name,
                color=variant.color,
                size=variant.size,
                image=variant.image or product.image,
            )
            self._lines.append(line)
            logger.info(f"line_item_added | line={line_id} quantity={quantity} unit_price={line.unit_price} promotion={line.applied_promotion_id}")

        notices = self._revalidate_voucher()
        return self._update(notices, line)

    async def add_from_catalog(
        self,
        catalog: CatalogSource,
        promotion_source: PromotionSource,
        product_id: str,
        variant_id: str,
        quantity: int = 1,
    ) -> CartUpdate:
        """Scan-to-add: look the variant up and price it against the live promotion list."""
        self._ensure_mutable()
        product = catalog.get_product(product_id)
        variant = product.get_variant(variant_id) if product else None
        if variant is None:
            logger.warning(f"add_from_catalog_not_found | product={product_id} variant={variant_id}")
            raise ProductNotFoundError(
                f"Product {product_id} variant {variant_id} not found",
                details={"product_id": product_id, "variant_id": variant_id},
            )
        promotions = await promotion_source.list_active_promotions()
        return self.add_line_item(product, variant, quantity, promotions)

    def adjust_quantity(self, line_id: str, delta: int) -> CartUpdate:
        """Move a line's quantity by delta; zero or below removes the line, above stock clamps."""
        self._bind_context()
        self._ensure_mutable()
        line = self._require_line(line_id)
        return self._apply_quantity(line, line.quantity + delta)

    def set_quantity(self, line_id: str, quantity: int) -> CartUpdate:
        """Absolute form of adjust_quantity."""
        self._bind_context()
        self._ensure_mutable()
        line = self._require_line(line_id)
        return self._apply_quantity(line, quantity)

    def remove_line_item(self, line_id: str) -> CartUpdate:
        self._bind_context()
        self._ensure_mutable()
        line = self._require_line(line_id)
        self._lines.remove(line)
        logger.info(f"line_item_removed | line={line_id} remaining_lines={len(self._lines)}")
        notices = self._revalidate_voucher()
        return self._update(notices, None)

    def clear(self) -> None:
        self._bind_context()
        self._ensure_mutable()
        self._lines = []
        self._clear_voucher()
        # Any lookup still in flight belongs to the cart that was just cleared
        self._voucher_attempt += 1
        self._touch()
        logger.info(f"cart_cleared | cart_id={self.cart_id}")

    def _apply_quantity(self, line: CartLineItem, requested: int) -> CartUpdate:
        if requested <= 0:
            return self.remove_line_item(line.id)

        notices = []
        clamped = min(requested, line.stock)
        if requested > line.stock:
            notices.append(CartNotice(
                code=CartErrorCode.CAPACITY_EXCEEDED,
                message=f"Only {line.stock} units of {line.name} are in stock",
                details={"line_id": line.id, "requested": requested, "stock": line.stock},
            ))
            logger.warning(f"quantity_clamped_to_stock | line={line.id} requested={requested} stock={line.stock}")

        line.quantity = clamped
        logger.info(f"line_quantity_updated | line={line.id} quantity={clamped}")
        notices.extend(self._revalidate_voucher())
        return self._update(notices, line)

    # ------------------------------------------------------------------
    # Voucher
    # ------------------------------------------------------------------

    async def apply_voucher(self, code: str, now: Optional[datetime] = None) -> CartUpdate:
        """Look a code up through the voucher source and apply it.

        Only the most recent call may change the cart: a lookup that resolves
        after a newer call was made (or after the cart was cleared) raises
        VoucherLookupSupersededError and leaves the cart alone. Eligibility is
        checked against the subtotal at the moment the lookup resolves.
        """
        self._bind_context()
        self._ensure_mutable()
        self._voucher_attempt += 1
        attempt = self._voucher_attempt
        code = code or ""
        logger.info(f"voucher_lookup_started | code={code} attempt={attempt}")

        voucher = await self.voucher_source.get_voucher_by_code(code)

        if attempt != self._voucher_attempt:
            logger.info(f"voucher_lookup_superseded | code={code} attempt={attempt} latest={self._voucher_attempt}")
            raise VoucherLookupSupersededError(
                f"Voucher lookup for {code} was superseded by a newer request",
                details={"code": code},
            )
        return self.validate_and_apply(code, [voucher] if voucher else [], now)

    def validate_and_apply(self, code: str, vouchers: Iterable[Voucher], now: Optional[datetime] = None) -> CartUpdate:
        """Apply a code from an already-fetched voucher list.

        Any rejection clears the previously applied voucher before re-raising.
        """
        self._bind_context()
        self._ensure_mutable()
        if self.is_empty:
            self._clear_voucher()
            raise VoucherBelowMinimumError("Add items to the cart before applying a voucher", details={"code": code, "subtotal": ZERO})
        try:
            application = self.voucher_engine.apply_voucher(code, self.subtotal, vouchers, now or self.clock())
        except VoucherRejectedError as e:
            self._clear_voucher()
            logger.warning(f"voucher_rejected | code={code} error_code={e.error_code} subtotal={self.subtotal}")
            raise
        self._set_voucher(application)
        return self._update([], None)

    def remove_voucher(self) -> CartUpdate:
        self._bind_context()
        self._ensure_mutable()
        if self._voucher:
            logger.info(f"voucher_removed | code={self._voucher.code}")
        self._clear_voucher()
        self._voucher_attempt += 1
        return self._update([], None)

    def _revalidate_voucher(self) -> List[CartNotice]:
        if self._voucher is None:
            return []
        code = self._voucher.code
        if self.is_empty:
            self._clear_voucher()
            logger.info(f"voucher_cleared_cart_empty | code={code}")
            return [CartNotice(
                code=CartErrorCode.VOUCHER_NO_LONGER_ELIGIBLE,
                message=f"Voucher {code} was removed because the cart is empty",
                details={"code": code},
            )]
        try:
            application = self.voucher_engine.revalidate(self._voucher, self.subtotal, self.clock())
        except VoucherBelowMinimumError as e:
            self._clear_voucher()
            logger.info(f"voucher_no_longer_eligible | code={code} subtotal={self.subtotal}")
            return [CartNotice(code=CartErrorCode.VOUCHER_NO_LONGER_ELIGIBLE, message=e.message, details=e.details)]
        self._discount_amount = application.discount_amount
        return []

    def _set_voucher(self, application: VoucherApplication) -> None:
        self._voucher = application.voucher
        self._discount_amount = application.discount_amount

    def _clear_voucher(self) -> None:
        self._voucher = None
        self._discount_amount = ZERO

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def build_order(self, payment_method: str, cash_tendered=None, now: Optional[datetime] = None) -> OrderSummary:
        """Validate payment and freeze the cart into an OrderSummary without side effects."""
        if self.is_empty:
            raise EmptyCartError("Cannot checkout an empty cart", details={"cart_id": self.cart_id})

        total = self.total
        method, tendered, change = PaymentValidator(total).settle(payment_method, cash_tendered)

        if self._voucher:
            shares = self.voucher_engine.allocate_discount(self._voucher, self._lines, self._discount_amount)
        else:
            shares = [ZERO for _ in self._lines]

        order_lines = tuple(
            OrderLine(
                line_id=line.id,
                product_id=line.product_id,
                variant_id=line.variant_id,
                name=line.name,
                color=line.color,
                size=line.size,
                quantity=line.quantity,
                unit_price=line.unit_price,
                original_price=line.original_price,
                line_total=line.line_total,
                allocated_discount=share,
                net_total=line.line_total - share,
            )
            for line, share in zip(self._lines, shares)
        )
        return OrderSummary(
            order_code=generate_order_code(),
            cart_id=self.cart_id,
            lines=order_lines,
            subtotal=self.subtotal,
            discount_amount=self._discount_amount,
            voucher_code=self._voucher.code if self._voucher else None,
            voucher_id=self._voucher.id if self._voucher else None,
            total=total,
            payment_method=method,
            amount_tendered=tendered,
            change_due=change,
            created_at=now or self.clock(),
        )

    async def checkout(self, payment_method: Optional[str] = None, cash_tendered=None, now: Optional[datetime] = None) -> OrderSummary:
        """Finalize the cart into an order.

        Steps:
            1. Validate payment and build the OrderSummary
            2. Hand the order to the order sink; on failure the cart is left intact
            3. Clear the cart
            4. Bump the voucher usage counter, if a voucher was applied

        Raises:
            EmptyCartError, InvalidPaymentMethodError, InsufficientPaymentError
            OrderSinkError: the sink rejected the order
            VoucherUsageError: order accepted but the usage counter update failed
            CheckoutInProgressError: another checkout of this cart has not finished
        """
        self._bind_context()
        self._ensure_mutable()
        self._checkout_pending = True
        previous_order_code = session_context.order_code
        try:
            return await self._submit_and_settle(payment_method, cash_tendered, now)
        finally:
            self._checkout_pending = False
            session_context.order_code = previous_order_code

    async def _submit_and_settle(self, payment_method: Optional[str], cash_tendered, now: Optional[datetime]) -> OrderSummary:
        order = self.build_order(payment_method or configs.DEFAULT_PAYMENT_METHOD, cash_tendered, now)
        session_context.order_code = order.order_code
        logger.info(f"checkout_started | order_code={order.order_code} subtotal={order.subtotal} discount={order.discount_amount} total={order.total} method={order.payment_method}")

        if self.order_sink is not None:
            try:
                await self.order_sink.submit(order)
            except OrderSinkError:
                logger.error(f"order_sink_rejected | order_code={order.order_code}")
                raise
            except Exception as e:
                logger.error(f"order_sink_failed | order_code={order.order_code} error={e}", exc_info=True)
                raise OrderSinkError(
                    f"Order {order.order_code} could not be submitted: {e}",
                    details={"order_code": order.order_code},
                ) from e

        voucher_id = order.voucher_id
        self._lines = []
        self._clear_voucher()
        self._voucher_attempt += 1
        self._touch()

        if voucher_id:
            try:
                await self.voucher_source.increment_usage(voucher_id)
            except Exception as e:
                logger.error(f"voucher_usage_increment_failed | order_code={order.order_code} voucher_id={voucher_id} error={e}", exc_info=True)
                raise VoucherUsageError(
                    f"Order {order.order_code} was placed but voucher usage could not be recorded",
                    order=order,
                    details={"order_code": order.order_code, "voucher_id": voucher_id},
                ) from e

        logger.info(f"checkout_completed | order_code={order.order_code} total={order.total} change={order.change_due}")
        return order

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find_line(self, line_id: str) -> Optional[CartLineItem]:
        return next((line for line in self._lines if line.id == line_id), None)

    def _update(self, notices: List[CartNotice], line: Optional[CartLineItem]) -> CartUpdate:
        self._touch()
        return CartUpdate(totals=self.totals(), notices=notices, line=line.model_copy() if line else None)

    def _bind_context(self) -> None:
        session_context.cart_id = self.cart_id

    def _ensure_mutable(self) -> None:
        if self._checkout_pending:
            logger.warning(f"cart_locked_for_checkout | cart_id={self.cart_id}")
            raise CheckoutInProgressError(
                "The cart is being checked out and cannot change until the order is settled",
                details={"cart_id": self.cart_id},
            )

    def _touch(self) -> None:
        self.updated_at = self.clock()
