from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, Optional

from storefront.core.constants import CartErrorCode, RecordStatus
from storefront.dto.vouchers import Voucher
from storefront.utils.datetime_helpers import ensure_aware
from storefront.utils.money import format_price
from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.validations.vouchers")


class VoucherValidator:
    """Runs the voucher eligibility checks in order; the first failure wins.

    Validation never mutates the voucher record, so a cashier can preview a
    code as often as they like before checkout.
    """

    def __init__(self, now: datetime):
        self.now = ensure_aware(now)

    def find_voucher(self, code: str, vouchers: Iterable[Voucher]) -> Optional[Voucher]:
        """Exact, case-sensitive match among active vouchers that have started."""
        for voucher in vouchers or []:
            if voucher.code != code:
                continue
            if not RecordStatus.is_active(voucher.status):
                continue
            if ensure_aware(voucher.start_date) > self.now:
                continue
            return voucher
        return None

    def validate(self, code: str, subtotal: Decimal, vouchers: Iterable[Voucher]) -> Dict:
        voucher = self.find_voucher(code, vouchers)
        if voucher is None:
            logger.warning(f"voucher_not_found | code={code}")
            return {
                "valid": False,
                "error": {
                    "code": CartErrorCode.VOUCHER_NOT_FOUND,
                    "field": "code",
                    "message": f"Voucher code '{code}' not found or inactive",
                    "details": {"code": code}
                }
            }

        eligibility = self.validate_min_order(voucher, subtotal)
        if not eligibility["valid"]:
            return eligibility

        if voucher.remaining <= 0:
            logger.warning(f"voucher_exhausted | code={code} used={voucher.used_count} quantity={voucher.quantity}")
            return {
                "valid": False,
                "voucher": voucher,
                "error": {
                    "code": CartErrorCode.VOUCHER_EXHAUSTED,
                    "field": "quantity",
                    "message": "Voucher has been fully redeemed",
                    "details": {"used_count": voucher.used_count, "quantity": voucher.quantity}
                }
            }

        if self.now > ensure_aware(voucher.end_date):
            logger.warning(f"voucher_expired | code={code} end_date={voucher.end_date.isoformat()}")
            return {
                "valid": False,
                "voucher": voucher,
                "error": {
                    "code": CartErrorCode.VOUCHER_EXPIRED,
                    "field": "end_date",
                    "message": "Voucher has expired",
                    "details": {"end_date": voucher.end_date.isoformat()}
                }
            }

        return {"valid": True, "voucher": voucher}

    def validate_min_order(self, voucher: Voucher, subtotal: Decimal) -> Dict:
        if subtotal < voucher.min_order_value:
            logger.warning(f"voucher_below_minimum | code={voucher.code} subtotal={subtotal} min_order_value={voucher.min_order_value}")
            return {
                "valid": False,
                "voucher": voucher,
                "error": {
                    "code": CartErrorCode.VOUCHER_BELOW_MINIMUM,
                    "field": "min_order_value",
                    "message": f"Minimum order of {format_price(voucher.min_order_value)} not met",
                    "details": {"required": voucher.min_order_value, "provided": subtotal}
                }
            }
        return {"valid": True, "voucher": voucher}
