"""
Domain exceptions for pricing, voucher and cart operations.

Every error carries the same ``{"error_code", "message", "details"}`` payload
the service hands back to callers, so a front end can show ``message`` and
branch on ``error_code``.
"""
from typing import Dict, Optional

from storefront.core.constants import CartErrorCode


class StorefrontError(Exception):
    error_code = "STOREFRONT_ERROR"

    def __init__(self, message: str, details: Optional[Dict] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    @property
    def detail(self) -> Dict:
        return {"error_code": self.error_code, "message": self.message, "details": self.details}


class CapacityExceededError(StorefrontError):
    error_code = CartErrorCode.CAPACITY_EXCEEDED


class LineItemNotFoundError(StorefrontError):
    error_code = CartErrorCode.LINE_NOT_FOUND


class ProductNotFoundError(StorefrontError):
    error_code = CartErrorCode.PRODUCT_NOT_FOUND


class VoucherRejectedError(StorefrontError):
    """Base for every reason a voucher code is refused."""


class VoucherNotFoundError(VoucherRejectedError):
    error_code = CartErrorCode.VOUCHER_NOT_FOUND


class VoucherBelowMinimumError(VoucherRejectedError):
    error_code = CartErrorCode.VOUCHER_BELOW_MINIMUM


class VoucherExhaustedError(VoucherRejectedError):
    error_code = CartErrorCode.VOUCHER_EXHAUSTED


class VoucherExpiredError(VoucherRejectedError):
    error_code = CartErrorCode.VOUCHER_EXPIRED


class VoucherLookupSupersededError(StorefrontError):
    error_code = CartErrorCode.VOUCHER_LOOKUP_SUPERSEDED


class CheckoutError(StorefrontError):
    pass


class EmptyCartError(CheckoutError):
    error_code = CartErrorCode.EMPTY_CART


class InsufficientPaymentError(CheckoutError):
    error_code = CartErrorCode.INSUFFICIENT_PAYMENT


class InvalidPaymentMethodError(CheckoutError):
    error_code = CartErrorCode.INVALID_PAYMENT_METHOD


class OrderSinkError(CheckoutError):
    error_code = CartErrorCode.ORDER_SINK_FAILED


class CheckoutInProgressError(StorefrontError):
    """The cart is being submitted; it cannot change until checkout finishes."""
    error_code = CartErrorCode.CHECKOUT_IN_PROGRESS


class VoucherUsageError(CheckoutError):
    """The order went through but the voucher usage counter could not be bumped."""
    error_code = CartErrorCode.VOUCHER_USAGE_SYNC_FAILED

    def __init__(self, message: str, order=None, details: Optional[Dict] = None):
        super().__init__(message, details=details)
        self.order = order


class PendingCartLimitError(StorefrontError):
    error_code = CartErrorCode.PENDING_CART_LIMIT


class PendingCartNotFoundError(StorefrontError):
    error_code = CartErrorCode.PENDING_CART_NOT_FOUND


class StorefrontAPIError(StorefrontError):
    error_code = CartErrorCode.STOREFRONT_API_FAILED
