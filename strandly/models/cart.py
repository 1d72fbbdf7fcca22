"""Shopping cart models."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from strandly.models.base import CMSModel
from strandly.models.catalog import Product


class CartItem(CMSModel):
    product_id: str = Field(..., description="Product id")
    quantity: int = Field(..., gt=0, description="Units")


class Cart(CMSModel):
    """Unpriced cart contents held in memory."""

    cart_id: str = Field(..., description="Unique cart identifier")
    items: list[CartItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class CartLine(CMSModel):
    product: Product
    quantity: int
    line_total: Decimal


class PricedCart(CMSModel):
    """Cart priced against current CMS product data."""

    cart_id: str
    lines: list[CartLine] = Field(default_factory=list)
    item_count: int = 0
    subtotal: Decimal = Decimal("0.00")
    currency: str = "USD"
    unavailable: list[str] = Field(
        default_factory=list, description="Product ids dropped from the cart"
    )
