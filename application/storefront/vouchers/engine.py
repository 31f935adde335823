from typing import Dict, Iterable, List, Optional
from datetime import datetime
from decimal import Decimal

# DTOs
from storefront.dto.cart import CartLineItem
from storefront.dto.vouchers import Voucher, VoucherApplication

# Validations
from storefront.validations.vouchers import VoucherValidator

# Constants
from storefront.core.constants import CartErrorCode, VoucherType

# Exceptions
from storefront.core.exceptions import (
    VoucherBelowMinimumError,
    VoucherExhaustedError,
    VoucherExpiredError,
    VoucherNotFoundError,
    VoucherRejectedError,
)

# Strategies
from storefront.vouchers.strategy.base import BaseVoucherStrategy
from storefront.vouchers.strategy.fixed_amount import FixedAmountStrategy
from storefront.vouchers.strategy.percentage import PercentageStrategy

# Utils
from storefront.utils.datetime_helpers import resolve_now
from storefront.utils.money import to_money

# Logging
from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.vouchers.engine")

VOUCHER_STRATEGIES = {
    VoucherType.PERCENTAGE: PercentageStrategy(),
    VoucherType.FIXED_AMOUNT: FixedAmountStrategy(),
}

REJECTION_ERRORS = {
    CartErrorCode.VOUCHER_NOT_FOUND: VoucherNotFoundError,
    CartErrorCode.VOUCHER_BELOW_MINIMUM: VoucherBelowMinimumError,
    CartErrorCode.VOUCHER_EXHAUSTED: VoucherExhaustedError,
    CartErrorCode.VOUCHER_EXPIRED: VoucherExpiredError,
}


def get_strategy(voucher: Voucher) -> BaseVoucherStrategy:
    return VOUCHER_STRATEGIES[voucher.type]


class VoucherEngine:
    """Validates voucher codes against a subtotal and computes the discount."""

    def apply_voucher(self, code: str, subtotal, vouchers: Iterable[Voucher], now: Optional[datetime] = None) -> VoucherApplication:
        """Validate a code and compute its discount.

        Args:
            code: Code typed by the customer or cashier (exact match)
            subtotal: Current cart subtotal
            vouchers: Candidate voucher records
            now: Wall-clock instant; defaults to the shop's current time

        Returns:
            VoucherApplication with the discount amount and the voucher record

        Raises:
            VoucherRejectedError: one subclass per rejection reason
        """
        subtotal = to_money(subtotal)
        validator = VoucherValidator(resolve_now(now))
        result = validator.validate(code, subtotal, vouchers)
        if not result["valid"]:
            raise self._rejection(result["error"])

        voucher = result["voucher"]
        discount_amount = self.compute_discount(voucher, subtotal)
        logger.info(f"voucher_applied | code={code} type={voucher.type} subtotal={subtotal} discount={discount_amount}")
        return VoucherApplication(voucher=voucher, discount_amount=discount_amount, subtotal=subtotal)

    def compute_discount(self, voucher: Voucher, subtotal) -> Decimal:
        """Raw discount by voucher type, capped at the subtotal."""
        return get_strategy(voucher).compute_discount(voucher, to_money(subtotal))

    def revalidate(self, voucher: Voucher, subtotal, now: Optional[datetime] = None) -> VoucherApplication:
        """Recompute an already-applied voucher against a new subtotal.

        Only the minimum order value is re-checked; quota and window were
        checked when the voucher was applied.

        Raises:
            VoucherBelowMinimumError: subtotal dropped below the voucher minimum
        """
        subtotal = to_money(subtotal)
        result = VoucherValidator(resolve_now(now)).validate_min_order(voucher, subtotal)
        if not result["valid"]:
            raise self._rejection(result["error"])
        return VoucherApplication(voucher=voucher, discount_amount=self.compute_discount(voucher, subtotal), subtotal=subtotal)

    def allocate_discount(self, voucher: Voucher, lines: List[CartLineItem], discount_amount: Decimal) -> List[Decimal]:
        return get_strategy(voucher).allocate_to_lines(lines, discount_amount)

    @staticmethod
    def _rejection(error: Dict) -> VoucherRejectedError:
        error_cls = REJECTION_ERRORS.get(error.get("code"), VoucherRejectedError)
        return error_cls(error.get("message", "Voucher rejected"), details=error.get("details", {}), error_code=error.get("code"))


_default_engine = VoucherEngine()


def apply_voucher(code: str, subtotal, vouchers: Iterable[Voucher], now: Optional[datetime] = None) -> VoucherApplication:
    return _default_engine.apply_voucher(code, subtotal, vouchers, now)
