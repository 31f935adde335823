from decimal import Decimal

from storefront.dto.vouchers import Voucher
from .base import BaseVoucherStrategy


class PercentageStrategy(BaseVoucherStrategy):
    def compute_raw_discount(self, voucher: Voucher, subtotal: Decimal) -> Decimal:
        raw = subtotal * voucher.value / 100
        # max_value is optional; absent means uncapped, never zero
        if voucher.max_value is not None and raw > voucher.max_value:
            raw = voucher.max_value
        return raw
