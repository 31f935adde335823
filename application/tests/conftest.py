from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from storefront.core.constants import RecordStatus, VoucherType
from storefront.dto.catalog import Product, ProductVariant
from storefront.dto.promotions import Promotion
from storefront.dto.vouchers import Voucher
from storefront.utils.datetime_helpers import VN_TZ

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=VN_TZ)


def make_promotion(id="promo-1", percent=10, products=None, status=RecordStatus.ACTIVE, start=None, end=None, name=None):
    return Promotion(
        id=id,
        name=name or f"Promotion {id}",
        discount_percent=Decimal(str(percent)),
        status=status,
        start_date=start or NOW - timedelta(days=7),
        end_date=end or NOW + timedelta(days=7),
        product_ids=products or [],
    )


def make_voucher(code="SALE10", type=VoucherType.FIXED_AMOUNT, value=100000, min_order_value=0, max_value=None,
                 quantity=10, used_count=0, status=RecordStatus.ACTIVE, start=None, end=None, id=None):
    return Voucher(
        id=id or f"v-{code}",
        code=code,
        name=f"Voucher {code}",
        type=type,
        value=Decimal(str(value)),
        max_value=Decimal(str(max_value)) if max_value is not None else None,
        min_order_value=Decimal(str(min_order_value)),
        quantity=quantity,
        used_count=used_count,
        status=status,
        start_date=start or NOW - timedelta(days=7),
        end_date=end or NOW + timedelta(days=7),
    )


def make_product(id="P", price=1000000, stock=3, name="Giày chạy bộ", variant_id="V1"):
    variant = ProductVariant(id=variant_id, color="Đen", size="42", stock=stock, price=Decimal(str(price)))
    return Product(id=id, name=name, variants=[variant])


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def product():
    return make_product()
