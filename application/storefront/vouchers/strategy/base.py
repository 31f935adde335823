from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List

from storefront.dto.cart import CartLineItem
from storefront.dto.vouchers import Voucher
from storefront.utils.money import ZERO, round_currency


class BaseVoucherStrategy(ABC):
    @abstractmethod
    def compute_raw_discount(self, voucher: Voucher, subtotal: Decimal) -> Decimal:
        pass

    def compute_discount(self, voucher: Voucher, subtotal: Decimal) -> Decimal:
        """Raw discount capped at the subtotal, in whole currency units."""
        if subtotal <= 0:
            return ZERO
        raw = self.compute_raw_discount(voucher, subtotal)
        return round_currency(max(ZERO, min(raw, subtotal)))

    def allocate_to_lines(self, lines: List[CartLineItem], discount_amount: Decimal) -> List[Decimal]:
        """Spread an order-level discount over lines in proportion to line totals.

        The last line absorbs the rounding remainder so shares sum to the discount.
        """
        if not lines:
            return []
        if discount_amount == 0:
            return [ZERO for _ in lines]

        subtotal = sum((line.line_total for line in lines), ZERO)
        if subtotal == 0:
            return [ZERO for _ in lines]

        remaining = discount_amount
        shares = []
        for idx, line in enumerate(lines):
            if idx == len(lines) - 1:
                share = remaining
            else:
                share = round_currency(line.line_total / subtotal * discount_amount)
                share = min(share, remaining)
            shares.append(share)
            remaining -= share
        return shares
