from decimal import Decimal

import pytest

from conftest import NOW, make_product, make_promotion, make_voucher
from storefront.cart.service import CartLedger
from storefront.core.constants import VoucherType
from storefront.core.exceptions import ProductNotFoundError
from storefront.repository.catalog import CatalogRepository
from storefront.repository.orders import OrdersRepository
from storefront.repository.promotions import PromotionsRepository
from storefront.repository.vouchers import VouchersRepository


async def test_counter_sale_with_promotion_and_voucher():
    catalog = CatalogRepository([make_product("P", price=1000000, stock=3)])
    promotions = PromotionsRepository([make_promotion("A", 20), make_promotion("B", 10)])
    vouchers = VouchersRepository([
        make_voucher("SALE10", VoucherType.FIXED_AMOUNT, value=100000, min_order_value=500000, quantity=10),
    ])
    orders = OrdersRepository()
    ledger = CartLedger(voucher_source=vouchers, order_sink=orders, clock=lambda: NOW)

    product = catalog.get_product("P")
    update = ledger.add_line_item(product, product.variants[0], 2, await promotions.list_active_promotions())
    assert update.line.unit_price == Decimal("800000")
    assert update.line.applied_promotion_id == "A"
    assert update.totals.subtotal == Decimal("1600000")

    update = await ledger.apply_voucher("SALE10")
    assert update.totals.discount_amount == Decimal("100000")
    assert update.totals.total == Decimal("1500000")

    update = ledger.adjust_quantity(update_line_id(ledger), -1)
    assert update.totals.subtotal == Decimal("800000")
    assert update.totals.voucher_code == "SALE10"
    assert update.totals.discount_amount == Decimal("100000")
    assert update.totals.total == Decimal("700000")
    assert not update.notices

    order = await ledger.checkout("cash", 800000)
    assert order.total == Decimal("700000")
    assert order.change_due == Decimal("100000")
    assert vouchers.list_vouchers()[0].used_count == 1
    assert orders.list_orders() == [order]
    assert ledger.is_empty


def update_line_id(ledger):
    return ledger.lines[0].id


async def test_scan_to_add_uses_catalog_and_live_promotions():
    catalog = CatalogRepository([make_product("P", price=500000, stock=2)])
    promotions = PromotionsRepository([make_promotion("A", 10, products=["P"])])
    ledger = CartLedger(clock=lambda: NOW)

    update = await ledger.add_from_catalog(catalog, promotions, "P", "V1", 2)
    assert update.totals.subtotal == Decimal("900000")

    with pytest.raises(ProductNotFoundError):
        await ledger.add_from_catalog(catalog, promotions, "P", "missing")
