class RecordStatus:
    """Status values shared by promotions and vouchers"""

    ACTIVE = "HOAT_DONG"
    INACTIVE = "KHONG_HOAT_DONG"

    @classmethod
    def is_active(cls, status: str) -> bool:
        return status == cls.ACTIVE


class VoucherType:
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class PaymentMethod:
    """Payment methods accepted at the POS counter"""

    CASH = "cash"
    TRANSFER = "transfer"

    ALL = [CASH, TRANSFER]

    @classmethod
    def is_cash(cls, method: str) -> bool:
        return (method or "").strip().lower() == cls.CASH

    @classmethod
    def is_valid(cls, method: str) -> bool:
        return (method or "").strip().lower() in cls.ALL


class PromotionErrorCode:
    PROMO_INACTIVE = "PROMO_INACTIVE"
    PROMO_NOT_STARTED = "PROMO_NOT_STARTED"
    PROMO_EXPIRED = "PROMO_EXPIRED"
    PRODUCT_NOT_IN_SCOPE = "PRODUCT_NOT_IN_SCOPE"


class CartErrorCode:
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    LINE_NOT_FOUND = "LINE_NOT_FOUND"
    VOUCHER_NOT_FOUND = "VOUCHER_NOT_FOUND"
    VOUCHER_EXPIRED = "VOUCHER_EXPIRED"
    VOUCHER_EXHAUSTED = "VOUCHER_EXHAUSTED"
    VOUCHER_BELOW_MINIMUM = "VOUCHER_BELOW_MINIMUM"
    VOUCHER_NO_LONGER_ELIGIBLE = "VOUCHER_NO_LONGER_ELIGIBLE"
    VOUCHER_LOOKUP_SUPERSEDED = "VOUCHER_LOOKUP_SUPERSEDED"
    INSUFFICIENT_PAYMENT = "INSUFFICIENT_PAYMENT"
    INVALID_PAYMENT_METHOD = "INVALID_PAYMENT_METHOD"
    EMPTY_CART = "EMPTY_CART"
    ORDER_SINK_FAILED = "ORDER_SINK_FAILED"
    CHECKOUT_IN_PROGRESS = "CHECKOUT_IN_PROGRESS"
    VOUCHER_USAGE_SYNC_FAILED = "VOUCHER_USAGE_SYNC_FAILED"
    STOREFRONT_API_FAILED = "STOREFRONT_API_FAILED"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    PENDING_CART_LIMIT = "PENDING_CART_LIMIT"
    PENDING_CART_NOT_FOUND = "PENDING_CART_NOT_FOUND"


class PendingCartConstants:
    NAME_PREFIX = "Giỏ hàng"
    ID_PREFIX = "cart"
