import asyncio
from decimal import Decimal

import pytest

from conftest import NOW, make_product, make_promotion, make_voucher
from storefront.cart.service import CartLedger
from storefront.core.constants import CartErrorCode, VoucherType
from storefront.core.exceptions import (
    CapacityExceededError,
    LineItemNotFoundError,
    VoucherBelowMinimumError,
    VoucherLookupSupersededError,
    VoucherNotFoundError,
)
from storefront.repository.vouchers import VouchersRepository


def new_ledger(*vouchers):
    return CartLedger(cart_id="cart-test", voucher_source=VouchersRepository(vouchers), clock=lambda: NOW)


class SlowVoucherSource:
    """Voucher source whose lookups resolve only when the test releases them."""

    def __init__(self, *vouchers):
        self.vouchers = {v.code: v for v in vouchers}
        self.gates = {}

    async def get_voucher_by_code(self, code):
        gate = self.gates.setdefault(code, asyncio.Event())
        await gate.wait()
        return self.vouchers.get(code)

    async def increment_usage(self, voucher_id):
        return None

    def release(self, code):
        self.gates.setdefault(code, asyncio.Event()).set()


def test_add_snapshots_promotion_price():
    ledger = new_ledger()
    product = make_product(price=1000000)
    update = ledger.add_line_item(product, product.variants[0], 1, [make_promotion("a", 20)])
    assert update.line.unit_price == Decimal("800000")
    assert update.line.original_price == Decimal("1000000")
    assert update.line.applied_promotion_id == "a"
    assert update.totals.subtotal == Decimal("800000")


def test_price_as_quoted_survives_promotion_changes():
    ledger = new_ledger()
    product = make_product(price=1000000, stock=5)
    ledger.add_line_item(product, product.variants[0], 1, [make_promotion("a", 20)])
    # Promotion list changes; merging more units keeps the quoted price
    ledger.add_line_item(product, product.variants[0], 1, [])
    line = ledger.lines[0]
    assert line.quantity == 2
    assert line.unit_price == Decimal("800000")
    assert ledger.subtotal == Decimal("1600000")


def test_merge_that_exceeds_stock_is_rejected():
    ledger = new_ledger()
    product = make_product(stock=5)
    variant = product.variants[0]
    ledger.add_line_item(product, variant, 5)
    with pytest.raises(CapacityExceededError):
        ledger.add_line_item(product, variant, 1)
    assert ledger.lines[0].quantity == 5


def test_add_above_stock_on_new_line_is_rejected():
    ledger = new_ledger()
    product = make_product(stock=2)
    with pytest.raises(CapacityExceededError):
        ledger.add_line_item(product, product.variants[0], 3)
    assert ledger.is_empty


def test_adjust_quantity_clamps_to_stock_with_notice():
    ledger = new_ledger()
    product = make_product(stock=5)
    line_id = ledger.add_line_item(product, product.variants[0], 4).line.id
    update = ledger.adjust_quantity(line_id, 3)
    assert update.line.quantity == 5
    assert update.has_notice(CartErrorCode.CAPACITY_EXCEEDED)


def test_adjust_quantity_to_zero_removes_line():
    ledger = new_ledger()
    product = make_product(stock=5)
    line_id = ledger.add_line_item(product, product.variants[0], 2).line.id
    update = ledger.adjust_quantity(line_id, -2)
    assert update.line is None
    assert ledger.is_empty
    assert update.totals.subtotal == Decimal("0")


def test_set_quantity_absolute_and_negative_removes():
    ledger = new_ledger()
    product = make_product(stock=5)
    line_id = ledger.add_line_item(product, product.variants[0], 1).line.id
    assert ledger.set_quantity(line_id, 4).line.quantity == 4
    ledger.set_quantity(line_id, -1)
    assert ledger.is_empty


def test_unknown_line_raises():
    ledger = new_ledger()
    with pytest.raises(LineItemNotFoundError):
        ledger.adjust_quantity("missing", 1)
    with pytest.raises(LineItemNotFoundError):
        ledger.remove_line_item("missing")


def test_lines_are_copies():
    ledger = new_ledger()
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 1)
    ledger.lines[0].quantity = 4
    assert ledger.lines[0].quantity == 1


async def test_voucher_auto_invalidation_when_subtotal_drops():
    voucher = make_voucher("MIN300", VoucherType.FIXED_AMOUNT, value=50000, min_order_value=300000)
    ledger = new_ledger(voucher)
    big = make_product("A", price=150000, stock=5, variant_id="VA")
    small = make_product("B", price=100000, stock=5, variant_id="VB")
    ledger.add_line_item(big, big.variants[0], 1)
    ledger.add_line_item(small, small.variants[0], 2)
    await ledger.apply_voucher("MIN300")
    assert ledger.discount_amount == Decimal("50000")

    update = ledger.adjust_quantity("B-VB", -1)

    assert update.totals.subtotal == Decimal("250000")
    assert update.has_notice(CartErrorCode.VOUCHER_NO_LONGER_ELIGIBLE)
    assert ledger.voucher is None
    assert ledger.discount_amount == Decimal("0")
    assert ledger.total == ledger.subtotal


async def test_percentage_discount_follows_subtotal():
    voucher = make_voucher("TEN", VoucherType.PERCENTAGE, value=10)
    ledger = new_ledger(voucher)
    product = make_product(price=200000, stock=5)
    ledger.add_line_item(product, product.variants[0], 1)
    await ledger.apply_voucher("TEN")
    assert ledger.discount_amount == Decimal("20000")
    ledger.adjust_quantity("P-V1", 2)
    assert ledger.discount_amount == Decimal("60000")
    assert ledger.total == Decimal("540000")


async def test_removing_last_line_clears_voucher():
    ledger = new_ledger(make_voucher("SALE10"))
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 1)
    await ledger.apply_voucher("SALE10")
    update = ledger.remove_line_item("P-V1")
    assert ledger.voucher is None
    assert update.totals.discount_amount == Decimal("0")
    assert update.has_notice(CartErrorCode.VOUCHER_NO_LONGER_ELIGIBLE)


async def test_failed_voucher_clears_previous_one():
    ledger = new_ledger(make_voucher("SALE10"), make_voucher("VIP", min_order_value=5000000))
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 1)
    await ledger.apply_voucher("SALE10")
    with pytest.raises(VoucherBelowMinimumError):
        await ledger.apply_voucher("VIP")
    assert ledger.voucher is None
    assert ledger.total == ledger.subtotal


async def test_unknown_code_rejected():
    ledger = new_ledger()
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 1)
    with pytest.raises(VoucherNotFoundError):
        await ledger.apply_voucher("GHOST")


async def test_remove_voucher():
    ledger = new_ledger(make_voucher("SALE10"))
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 1)
    await ledger.apply_voucher("SALE10")
    update = ledger.remove_voucher()
    assert update.totals.voucher_code is None
    assert update.totals.total == update.totals.subtotal


async def test_stale_lookup_is_discarded():
    source = SlowVoucherSource(make_voucher("FIRST", value=10000), make_voucher("SECOND", value=20000))
    ledger = CartLedger(voucher_source=source, clock=lambda: NOW)
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 1)

    first = asyncio.create_task(ledger.apply_voucher("FIRST"))
    second = asyncio.create_task(ledger.apply_voucher("SECOND"))
    await asyncio.sleep(0)

    source.release("SECOND")
    await second
    source.release("FIRST")
    with pytest.raises(VoucherLookupSupersededError):
        await first

    assert ledger.voucher.code == "SECOND"
    assert ledger.discount_amount == Decimal("20000")


async def test_lookup_checks_subtotal_at_resolution_time():
    source = SlowVoucherSource(make_voucher("MIN", value=50000, min_order_value=1500000))
    ledger = CartLedger(voucher_source=source, clock=lambda: NOW)
    product = make_product(price=1000000, stock=5)
    ledger.add_line_item(product, product.variants[0], 2)

    pending = asyncio.create_task(ledger.apply_voucher("MIN"))
    await asyncio.sleep(0)
    ledger.adjust_quantity("P-V1", -1)
    source.release("MIN")

    with pytest.raises(VoucherBelowMinimumError):
        await pending
    assert ledger.voucher is None


async def test_clear_drops_lines_voucher_and_pending_lookup():
    source = SlowVoucherSource(make_voucher("SALE10"))
    ledger = CartLedger(voucher_source=source, clock=lambda: NOW)
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 1)

    pending = asyncio.create_task(ledger.apply_voucher("SALE10"))
    await asyncio.sleep(0)
    ledger.clear()
    source.release("SALE10")

    with pytest.raises(VoucherLookupSupersededError):
        await pending
    assert ledger.is_empty
    assert ledger.voucher is None
    assert ledger.totals().total == Decimal("0")


def test_get_line_returns_snapshot():
    ledger = new_ledger()
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 2)
    line = ledger.get_line("P-V1")
    assert line.quantity == 2
    assert line.line_total == Decimal("2000000")
    with pytest.raises(LineItemNotFoundError):
        ledger.get_line("P-V9")


async def test_voucher_code_must_match_exactly():
    ledger = new_ledger(make_voucher("SALE10"))
    product = make_product(stock=5)
    ledger.add_line_item(product, product.variants[0], 1)
    with pytest.raises(VoucherNotFoundError):
        await ledger.apply_voucher(" SALE10 ")
    with pytest.raises(VoucherNotFoundError):
        await ledger.apply_voucher("sale10")
    assert ledger.voucher is None
