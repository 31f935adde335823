from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from storefront.core.constants import RecordStatus, VoucherType


class Voucher(BaseModel):
    """Redeemable voucher code with a finite quota"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"), description="Voucher identifier")
    code: str = Field(..., description="Unique, case-sensitive code")
    name: str = Field("", description="Voucher display name")
    type: str = Field(..., description="PERCENTAGE or FIXED_AMOUNT")
    value: Decimal = Field(..., ge=0, description="Percentage or fixed amount")
    max_value: Optional[Decimal] = Field(None, ge=0, validation_alias=AliasChoices("max_value", "maxValue", "maxDiscount"), description="Cap for percentage vouchers")
    min_order_value: Decimal = Field(Decimal("0"), ge=0, validation_alias=AliasChoices("min_order_value", "minOrderValue"), description="Minimum subtotal required")
    quantity: int = Field(..., ge=0, description="Total issuable quantity")
    used_count: int = Field(0, ge=0, validation_alias=AliasChoices("used_count", "usedCount"), description="Redemptions so far")
    status: str = Field(RecordStatus.ACTIVE, description="HOAT_DONG (active) or KHONG_HOAT_DONG (inactive)")
    start_date: datetime = Field(..., validation_alias=AliasChoices("start_date", "startDate"))
    end_date: datetime = Field(..., validation_alias=AliasChoices("end_date", "endDate"))

    @model_validator(mode="after")
    def check_invariants(self):
        if self.type not in (VoucherType.PERCENTAGE, VoucherType.FIXED_AMOUNT):
            raise ValueError(f"Unsupported voucher type: {self.type}")
        if self.type == VoucherType.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage voucher value must be between 0 and 100")
        if self.used_count > self.quantity:
            raise ValueError("used_count must not exceed quantity")
        return self

    @property
    def remaining(self) -> int:
        return self.quantity - self.used_count


class VoucherApplication(BaseModel):
    """Successful voucher validation: the discount to apply and the voucher that earned it"""
    model_config = ConfigDict(frozen=True)

    voucher: Voucher
    discount_amount: Decimal
    subtotal: Decimal
