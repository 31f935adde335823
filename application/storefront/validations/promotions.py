from datetime import datetime
from typing import Dict, List

from storefront.core.constants import PromotionErrorCode, RecordStatus
from storefront.dto.promotions import Promotion
from storefront.utils.datetime_helpers import ensure_aware
from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.validations.promotions")


class PromotionValidator:
    """Decides whether one promotion is currently effective for one product."""

    def __init__(self, promotion: Promotion, product_id: str, now: datetime):
        self.promotion = promotion
        self.product_id = product_id
        self.now = ensure_aware(now)
        self.errors: List[Dict] = []

    def validate_status(self):
        if not RecordStatus.is_active(self.promotion.status):
            self.errors.append({"code": PromotionErrorCode.PROMO_INACTIVE, "field": "status", "message": "Promotion is not active"})

    def validate_time_window(self):
        start_date = ensure_aware(self.promotion.start_date)
        end_date = ensure_aware(self.promotion.end_date)

        if self.now < start_date:
            self.errors.append({"code": PromotionErrorCode.PROMO_NOT_STARTED, "field": "start_date", "message": "Promotion has not started yet"})
        elif self.now > end_date:
            self.errors.append({"code": PromotionErrorCode.PROMO_EXPIRED, "field": "end_date", "message": "Promotion has expired"})

    def validate_scope(self):
        if self.promotion.is_global:
            return
        if self.product_id not in self.promotion.product_ids:
            self.errors.append({"code": PromotionErrorCode.PRODUCT_NOT_IN_SCOPE, "field": "product_ids", "message": f"Promotion does not cover product {self.product_id}"})

    def validate_all(self) -> List[Dict]:
        self.validate_status()
        self.validate_time_window()
        self.validate_scope()
        if self.errors:
            logger.debug(f"promotion_not_effective | promotion={self.promotion.id} product={self.product_id} errors={[e['code'] for e in self.errors]}")
        return self.errors

    def is_effective(self) -> bool:
        return not self.validate_all()
