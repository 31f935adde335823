import json
from decimal import Decimal

import httpx
import pytest

from conftest import NOW, make_product, make_voucher
from storefront.cart.service import CartLedger
from storefront.core.exceptions import OrderSinkError, StorefrontAPIError
from storefront.integrations.storefront_api import StorefrontAPIClient

VOUCHER_RECORD = {
    "_id": "v1",
    "code": "SALE10",
    "name": "Giảm 100K",
    "type": "FIXED_AMOUNT",
    "value": 100000,
    "minOrderValue": 500000,
    "quantity": 10,
    "usedCount": 2,
    "status": "HOAT_DONG",
    "startDate": "2025-06-01T00:00:00+07:00",
    "endDate": "2025-06-30T23:59:59+07:00",
}

PROMOTION_RECORD = {
    "_id": "p1",
    "name": "Hè rực rỡ",
    "discountPercent": 20,
    "status": "HOAT_DONG",
    "startDate": "2025-06-01T00:00:00+07:00",
    "endDate": "2025-06-30T23:59:59+07:00",
    "products": [],
}


def make_client(handler):
    client = httpx.AsyncClient(base_url="https://api.example.test", transport=httpx.MockTransport(handler))
    return StorefrontAPIClient(base_url="https://api.example.test", token="secret", client=client)


async def test_get_voucher_by_code_matches_exact_code():
    seen = {}

    def handler(request):
        seen["code"] = request.url.params["code"]
        seen["auth"] = request.headers["Authorization"]
        other = dict(VOUCHER_RECORD, _id="v2", code="SALE100")
        return httpx.Response(200, json={"success": True, "message": "ok", "data": {"vouchers": [other, VOUCHER_RECORD]}})

    api = make_client(handler)
    voucher = await api.get_voucher_by_code("SALE10")
    await api.close()

    assert voucher.id == "v1"
    assert voucher.min_order_value == Decimal("500000")
    assert seen == {"code": "SALE10", "auth": "Bearer secret"}


async def test_missing_voucher_returns_none():
    def handler(request):
        return httpx.Response(200, json={"success": True, "message": "ok", "data": {"vouchers": []}})

    assert await make_client(handler).get_voucher_by_code("GHOST") is None


async def test_voucher_lookup_404_returns_none():
    def handler(request):
        return httpx.Response(404, json={"success": False, "message": "Không tìm thấy voucher"})

    assert await make_client(handler).get_voucher_by_code("GHOST") is None


async def test_voucher_lookup_server_error_raises():
    def handler(request):
        return httpx.Response(500, json={"success": False, "message": "boom"})

    with pytest.raises(StorefrontAPIError):
        await make_client(handler).get_voucher_by_code("SALE10")


async def test_increment_usage_uses_put():
    def handler(request):
        assert request.method == "PUT"
        assert request.url.path == "/vouchers/v1/increment-usage"
        return httpx.Response(200, json={"success": True, "message": "ok", "data": dict(VOUCHER_RECORD, usedCount=3)})

    voucher = await make_client(handler).increment_usage("v1")
    assert voucher.used_count == 3


async def test_list_active_promotions_skips_invalid_records():
    def handler(request):
        assert request.url.params["status"] == "HOAT_DONG"
        broken = dict(PROMOTION_RECORD, _id="p2", discountPercent=150)
        return httpx.Response(200, json={"success": True, "message": "ok", "data": {"promotions": [PROMOTION_RECORD, broken]}})

    promotions = await make_client(handler).list_active_promotions()
    assert [p.id for p in promotions] == ["p1"]


async def test_checkout_through_api():
    posted = {}

    def handler(request):
        if request.url.path == "/vouchers":
            return httpx.Response(200, json={"success": True, "message": "ok", "data": {"vouchers": [VOUCHER_RECORD]}})
        if request.url.path == "/pos/orders":
            posted.update(json.loads(request.content))
            return httpx.Response(201, json={"success": True, "message": "created", "data": {"_id": "o1"}})
        if request.url.path == "/vouchers/v1/increment-usage":
            posted["incremented"] = True
            return httpx.Response(200, json={"success": True, "message": "ok", "data": dict(VOUCHER_RECORD, usedCount=3)})
        return httpx.Response(404, json={"success": False, "message": "not found"})

    api = make_client(handler)
    ledger = CartLedger(voucher_source=api, order_sink=api, clock=lambda: NOW)
    product = make_product(price=300000, stock=5)
    ledger.add_line_item(product, product.variants[0], 2)
    await ledger.apply_voucher("SALE10")
    order = await ledger.checkout("cash", 600000)

    assert order.change_due == Decimal("100000")
    assert posted["total"] == 500000
    assert posted["discount"] == 100000
    assert posted["payment"] == {"method": "cash", "amount": 600000, "change": 100000}
    assert posted["items"][0] == {"productId": "P", "variantId": "V1", "quantity": 2, "price": 300000, "discount": 100000}
    assert posted["incremented"] is True


async def test_rejected_order_raises_sink_error_and_keeps_cart():
    def handler(request):
        return httpx.Response(400, json={"success": False, "message": "Sản phẩm đã hết hàng"})

    api = make_client(handler)
    ledger = CartLedger(order_sink=api, clock=lambda: NOW)
    product = make_product(price=300000, stock=5)
    ledger.add_line_item(product, product.variants[0], 1)

    with pytest.raises(OrderSinkError) as exc:
        await ledger.checkout("transfer")
    assert "hết hàng" in exc.value.message
    assert not ledger.is_empty


async def test_transport_error_surfaces_as_sink_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = make_client(handler)
    ledger = CartLedger(order_sink=api, clock=lambda: NOW)
    product = make_product(price=300000, stock=5)
    ledger.add_line_item(product, product.variants[0], 1)

    with pytest.raises(OrderSinkError):
        await ledger.checkout("transfer")


def test_client_requires_configuration():
    with pytest.raises(ValueError):
        StorefrontAPIClient(base_url="")
