from typing import Dict, Iterable, List, Optional

from storefront.dto.vouchers import Voucher

from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.repository.vouchers")


class VouchersRepository:
    """In-memory voucher source with the post-checkout usage counter"""

    def __init__(self, vouchers: Optional[Iterable[Voucher]] = None):
        self._vouchers: Dict[str, Voucher] = {v.id: v for v in vouchers or []}

    async def get_voucher_by_code(self, code: str) -> Optional[Voucher]:
        voucher = next((v for v in self._vouchers.values() if v.code == code), None)
        logger.info(f"get_voucher_by_code | code={code} found={voucher is not None}")
        return voucher

    async def increment_usage(self, voucher_id: str) -> Optional[Voucher]:
        voucher = self._vouchers.get(voucher_id)
        if voucher is None:
            logger.warning(f"increment_usage_voucher_missing | voucher_id={voucher_id}")
            return None
        if voucher.used_count >= voucher.quantity:
            # used_count must never pass quantity
            logger.warning(f"increment_usage_quota_exhausted | voucher_id={voucher_id} used={voucher.used_count} quantity={voucher.quantity}")
            return voucher
        updated = voucher.model_copy(update={"used_count": voucher.used_count + 1})
        self._vouchers[voucher_id] = updated
        logger.info(f"increment_usage | voucher_id={voucher_id} code={voucher.code} used={updated.used_count}/{updated.quantity}")
        return updated

    def list_vouchers(self) -> List[Voucher]:
        return list(self._vouchers.values())
