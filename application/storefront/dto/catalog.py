from typing import List, Optional
from decimal import Decimal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from storefront.dto.promotions import Promotion


class ProductVariant(BaseModel):
    """One color/size pairing of a product with its own price and stock"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"), description="Variant identifier")
    color: str = Field("", description="Color display name")
    size: str = Field("", description="Size display value")
    stock: int = Field(0, ge=0, description="Units available for sale")
    price: Decimal = Field(..., ge=0, description="Unit price of this variant")
    image: Optional[str] = Field(None, description="Variant image URL")


class Product(BaseModel):
    """Catalog product as supplied by the catalog source (read-only)"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"), description="Product identifier")
    name: str = Field(..., description="Product display name")
    price: Optional[Decimal] = Field(None, ge=0, description="Base unit price when variants do not carry one")
    image: Optional[str] = Field(None, description="Primary product image URL")
    variants: List[ProductVariant] = Field(default_factory=list, description="Sellable variants")

    def get_variant(self, variant_id: str) -> Optional[ProductVariant]:
        return next((v for v in self.variants if v.id == variant_id), None)

    @property
    def base_price(self) -> Decimal:
        """Price shown on listings: first variant's price, falling back to the product price."""
        if self.variants:
            return self.variants[0].price
        return self.price if self.price is not None else Decimal("0")


class PricedProduct(BaseModel):
    """Product annotated with its promotion-resolved price"""
    model_config = ConfigDict(frozen=True)

    product: Product
    original_price: Decimal
    discounted_price: Decimal
    discount_percent: Decimal = Field(Decimal("0"))
    has_discount: bool = False
    applied_promotion: Optional[Promotion] = None
