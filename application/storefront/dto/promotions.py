from typing import Any, List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.core.constants import RecordStatus


class Promotion(BaseModel):
    """Time-bounded percentage campaign applying to every product or to an explicit set"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"), description="Promotion identifier")
    code: str = Field("", description="Promotion code shown in admin")
    name: str = Field(..., description="Campaign name")
    description: Optional[str] = Field(None, description="Campaign description")
    discount_percent: Decimal = Field(..., ge=0, le=100, validation_alias=AliasChoices("discount_percent", "discountPercent"), description="Discount percentage (0-100)")
    status: str = Field(RecordStatus.ACTIVE, description="HOAT_DONG (active) or KHONG_HOAT_DONG (inactive)")
    start_date: datetime = Field(..., validation_alias=AliasChoices("start_date", "startDate"), description="Inclusive start")
    end_date: datetime = Field(..., validation_alias=AliasChoices("end_date", "endDate"), description="Inclusive end")
    product_ids: List[str] = Field(default_factory=list, validation_alias=AliasChoices("product_ids", "products"), description="Scoped product ids; empty means all products")

    @field_validator("product_ids", mode="before")
    @classmethod
    def normalize_product_ids(cls, value: Any) -> List[str]:
        """Scope may arrive as plain ids or as embedded product documents."""
        if not value:
            return []
        ids = []
        for entry in value:
            if isinstance(entry, dict):
                entry = entry.get("_id") or entry.get("id")
            if entry:
                ids.append(str(entry))
        return ids

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    @property
    def is_global(self) -> bool:
        return not self.product_ids


class DiscountResolution(BaseModel):
    """Outcome of resolving the best promotion for one product price"""
    model_config = ConfigDict(frozen=True)

    original_price: Decimal
    discounted_price: Decimal
    discount_percent: Decimal = Field(Decimal("0"))
    applied_promotion: Optional[Promotion] = None

    @property
    def has_discount(self) -> bool:
        return self.discount_percent > 0 and self.discounted_price < self.original_price
