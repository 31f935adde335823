from decimal import Decimal

from storefront.dto.vouchers import Voucher
from .base import BaseVoucherStrategy


class FixedAmountStrategy(BaseVoucherStrategy):
    def compute_raw_discount(self, voucher: Voucher, subtotal: Decimal) -> Decimal:
        return voucher.value
