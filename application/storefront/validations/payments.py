from decimal import Decimal
from typing import Optional

from storefront.core.constants import PaymentMethod
from storefront.core.exceptions import InsufficientPaymentError, InvalidPaymentMethodError
from storefront.utils.money import ZERO, format_price, parse_tendered_amount

from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.validations.payments")


class PaymentValidator:
    def __init__(self, total: Decimal):
        self.total = total

    def validate_payment_method(self, payment_method: str) -> str:
        """Normalise the method and make sure the counter accepts it."""
        if not PaymentMethod.is_valid(payment_method):
            logger.error(f"Invalid payment_method for pos checkout: {payment_method}")
            raise InvalidPaymentMethodError(
                f"payment_method must be one of: {', '.join(PaymentMethod.ALL)}. Got: {payment_method}",
                details={"payment_method": payment_method},
            )
        return payment_method.strip().lower()

    def validate_cash_tendered(self, cash_tendered) -> Decimal:
        """Cash must be a valid non-negative amount covering the total."""
        amount = parse_tendered_amount(cash_tendered)
        if amount is None:
            logger.warning(f"cash_tendered_invalid | value={cash_tendered!r} total={self.total}")
            raise InsufficientPaymentError(
                "Cash tendered must be a valid non-negative amount",
                details={"tendered": str(cash_tendered), "total": self.total},
            )
        if amount < self.total:
            logger.warning(f"cash_tendered_insufficient | tendered={amount} total={self.total}")
            raise InsufficientPaymentError(
                f"Cash tendered {format_price(amount)} is less than the total {format_price(self.total)}",
                details={"tendered": amount, "total": self.total, "shortfall": self.total - amount},
            )
        return amount

    def settle(self, payment_method: str, cash_tendered=None) -> tuple:
        """Return (method, amount_tendered, change_due) for a checkout.

        Non-cash methods are settled for exactly the total with no change.
        """
        method = self.validate_payment_method(payment_method)
        if PaymentMethod.is_cash(method):
            tendered = self.validate_cash_tendered(cash_tendered)
            return method, tendered, tendered - self.total
        return method, self.total, ZERO
