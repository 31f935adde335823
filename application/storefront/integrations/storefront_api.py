import httpx
from httpx_retry import AsyncRetryTransport, RetryPolicy
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ValidationError

# DTOs
from storefront.dto.cart import OrderSummary
from storefront.dto.promotions import Promotion
from storefront.dto.vouchers import Voucher

# Constants
from storefront.core.constants import RecordStatus

# Exceptions
from storefront.core.exceptions import OrderSinkError, StorefrontAPIError

# Session context
from storefront.core.session_context import session_context

# Logger
from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront_api")

# Settings
from storefront.config.settings import StorefrontConfigs
configs = StorefrontConfigs()

RETRYABLE_STATUS_CODES = [429, 500, 502, 503, 504]


class StorefrontAPIReturnMessage(BaseModel):
    success: bool
    message: str
    status_code: Optional[int] = None
    data: Optional[Any] = None


class StorefrontAPIClient:
    """Backs the voucher source, promotion source and order sink with the shop's REST API"""

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or configs.STOREFRONT_API_BASE_URL).rstrip("/")
        self.token = token if token is not None else configs.STOREFRONT_API_TOKEN
        self.timeout = configs.STOREFRONT_API_TIMEOUT

        if client is not None:
            self.client = client
            return

        if not (configs.STOREFRONT_API_ENABLED and self.base_url):
            logger.error("Storefront API integration is disabled or not configured")
            raise ValueError("Storefront API integration is disabled or not configured")

        # Configure retry policy for storefront API calls
        retry_policy = RetryPolicy(
            max_retries=configs.STOREFRONT_API_MAX_RETRIES,
            initial_delay=0.5,
            multiplier=2.0,
            retry_on=RETRYABLE_STATUS_CODES
        )
        retry_transport = AsyncRetryTransport(policy=retry_policy)

        # Persistent async client with retry support
        self.client = httpx.AsyncClient(base_url=self.base_url, transport=retry_transport, timeout=self.timeout)

    async def close(self):
        """Explicitly close the HTTP client to free resources."""
        await self.client.aclose()

    def return_message(self, success: bool, message: str, status_code: Optional[int] = None, data: Optional[Any] = None) -> StorefrontAPIReturnMessage:
        return StorefrontAPIReturnMessage(success=success, message=message, status_code=status_code, data=data)

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if session_context.terminal_id:
            headers["X-Terminal-Id"] = session_context.terminal_id
        return headers

    async def _request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None, payload: Optional[Dict[str, Any]] = None, context_info: str = "") -> StorefrontAPIReturnMessage:
        """Send a request and unwrap the {success, message, data} envelope.

        Network-level retries (429, 500, 502, 503, 504) are handled by the
        httpx-retry transport; this method never raises for HTTP failures.
        """
        try:
            resp = await self.client.request(method, endpoint, headers=self._get_headers(), params=params, json=payload)

            body = resp.json() if resp.content else {}
            if not isinstance(body, dict):
                body = {"data": body}

            if resp.status_code in (200, 201, 202) and body.get("success", True):
                return self.return_message(success=True, message=body.get("message", "Success"), status_code=resp.status_code, data=body.get("data"))

            logger.error(f"storefront_api_failed | {method} {endpoint} {context_info} status_code={resp.status_code} error={body.get('message', resp.text)}")
            return self.return_message(success=False, message=body.get("message") or f"storefront_api_{resp.status_code}", status_code=resp.status_code, data=body.get("data"))

        except httpx.HTTPError as e:
            logger.error(f"Storefront API: transport error for {method} {endpoint} | {context_info} | error={str(e)}", exc_info=True)
            return self.return_message(success=False, message=f"storefront_api_error: {str(e)}")
        except ValueError as e:
            # Non-JSON body
            logger.error(f"Storefront API: invalid response for {method} {endpoint} | {context_info} | error={str(e)}")
            return self.return_message(success=False, message=f"storefront_api_invalid_response: {str(e)}")

    # ------------------------------------------------------------------
    # VoucherSource
    # ------------------------------------------------------------------

    async def get_voucher_by_code(self, code: str) -> Optional[Voucher]:
        result = await self._request("GET", "/vouchers", params={"code": code}, context_info=f"code={code}")
        if not result.success:
            if result.status_code == 404:
                return None
            raise StorefrontAPIError(f"Voucher lookup failed: {result.message}", details={"code": code, "status_code": result.status_code})

        data = result.data or {}
        records = data.get("vouchers", []) if isinstance(data, dict) else data
        # The list endpoint filters loosely; codes are matched exactly
        record = next((r for r in records or [] if r.get("code") == code), None)
        if record is None:
            logger.info(f"voucher_not_found | code={code}")
            return None
        try:
            return Voucher.model_validate(record)
        except ValidationError as e:
            logger.error(f"voucher_record_invalid | code={code} errors={e.errors()}")
            raise StorefrontAPIError(f"Voucher {code} has an invalid record", details={"code": code}) from e

    async def increment_usage(self, voucher_id: str) -> Optional[Voucher]:
        result = await self._request("PUT", f"/vouchers/{voucher_id}/increment-usage", payload={}, context_info=f"voucher_id={voucher_id}")
        if not result.success:
            raise StorefrontAPIError(f"Voucher usage update failed: {result.message}", details={"voucher_id": voucher_id, "status_code": result.status_code})
        logger.info(f"voucher_usage_incremented | voucher_id={voucher_id}")
        return Voucher.model_validate(result.data) if isinstance(result.data, dict) else None

    # ------------------------------------------------------------------
    # PromotionSource
    # ------------------------------------------------------------------

    async def list_active_promotions(self) -> List[Promotion]:
        result = await self._request("GET", "/promotions", params={"status": RecordStatus.ACTIVE})
        if not result.success:
            raise StorefrontAPIError(f"Promotion listing failed: {result.message}", details={"status_code": result.status_code})

        data = result.data or {}
        records = data.get("promotions", []) if isinstance(data, dict) else data
        promotions = []
        for record in records or []:
            try:
                promotions.append(Promotion.model_validate(record))
            except ValidationError as e:
                logger.warning(f"promotion_record_skipped | id={record.get('_id') or record.get('id')} errors={e.error_count()}")
        logger.info(f"promotions_fetched | count={len(promotions)}")
        return promotions

    # ------------------------------------------------------------------
    # OrderSink
    # ------------------------------------------------------------------

    def build_order_payload(self, order: OrderSummary) -> Dict[str, Any]:
        return {
            "orderCode": order.order_code,
            "items": [
                {
                    "productId": line.product_id,
                    "variantId": line.variant_id,
                    "quantity": line.quantity,
                    "price": int(line.unit_price),
                    "discount": int(line.allocated_discount),
                }
                for line in order.lines
            ],
            "subTotal": int(order.subtotal),
            "discount": int(order.discount_amount),
            "voucher": order.voucher_id,
            "total": int(order.total),
            "payment": {
                "method": order.payment_method,
                "amount": int(order.amount_tendered),
                "change": int(order.change_due),
            },
            "createdAt": order.created_at.isoformat(),
        }

    async def submit(self, order: OrderSummary) -> None:
        result = await self._request("POST", "/pos/orders", payload=self.build_order_payload(order), context_info=f"order_code={order.order_code}")
        if not result.success:
            raise OrderSinkError(f"Order {order.order_code} was not accepted: {result.message}", details={"order_code": order.order_code, "status_code": result.status_code})
        logger.info(f"order_pushed | order_code={order.order_code} total={order.total}")
