from typing import Dict, List, Optional, Tuple
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field


class CartLineItem(BaseModel):
    """One product variant in the cart with its price snapshotted at add time"""
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="Stable line id: '{product_id}-{variant_id}'")
    product_id: str
    variant_id: str
    quantity: int = Field(..., ge=1, description="Units in the cart (1..stock)")
    unit_price: Decimal = Field(..., ge=0, description="Price as quoted when the line was added")
    original_price: Decimal = Field(..., ge=0, description="Variant price before promotion")
    discount_percent: Decimal = Field(Decimal("0"))
    has_discount: bool = False
    applied_promotion_id: Optional[str] = None
    stock: int = Field(..., ge=0, description="Stock ceiling captured when the line was added")
    # Display fields
    name: str = ""
    color: str = ""
    size: str = ""
    image: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CartNotice(BaseModel):
    """Non-fatal condition surfaced by a mutation (clamped quantity, voucher dropped)"""
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    details: Dict = Field(default_factory=dict)


class CartTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    voucher_code: Optional[str] = None
    total_items: int = 0


class CartUpdate(BaseModel):
    """Result of a cart mutation: fresh totals plus any notices"""
    model_config = ConfigDict(frozen=True)

    totals: CartTotals
    notices: List[CartNotice] = Field(default_factory=list)
    line: Optional[CartLineItem] = Field(None, description="Line touched by the mutation, None if it was removed")

    def has_notice(self, code: str) -> bool:
        return any(n.code == code for n in self.notices)


class OrderLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_id: str
    product_id: str
    variant_id: str
    name: str
    color: str
    size: str
    quantity: int
    unit_price: Decimal
    original_price: Decimal
    line_total: Decimal
    allocated_discount: Decimal = Field(Decimal("0"), description="Share of the voucher discount")
    net_total: Decimal


class OrderSummary(BaseModel):
    """Immutable record produced by a successful checkout"""
    model_config = ConfigDict(frozen=True)

    order_code: str
    cart_id: str
    lines: Tuple[OrderLine, ...]
    subtotal: Decimal
    discount_amount: Decimal
    voucher_code: Optional[str] = None
    voucher_id: Optional[str] = None
    total: Decimal
    payment_method: str
    amount_tendered: Decimal
    change_due: Decimal
    created_at: datetime
