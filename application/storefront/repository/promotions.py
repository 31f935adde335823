from typing import Iterable, List, Optional

from storefront.core.constants import RecordStatus
from storefront.dto.promotions import Promotion

from storefront.logging.utils import get_app_logger
logger = get_app_logger("storefront.repository.promotions")


class PromotionsRepository:
    """In-memory promotion source.

    Mirrors what the storefront API returns: campaigns filtered by active
    status only. Window and scope filtering is left to the resolver.
    """

    def __init__(self, promotions: Optional[Iterable[Promotion]] = None):
        self._promotions: List[Promotion] = list(promotions or [])

    async def list_active_promotions(self) -> List[Promotion]:
        promotions = [p for p in self._promotions if RecordStatus.is_active(p.status)]
        logger.info(f"list_active_promotions | total={len(self._promotions)} active={len(promotions)}")
        return promotions
