# storefront/schemas/cart.py
from pydantic import BaseModel, Field, ConfigDict, computed_field
from pydantic.alias_generators import to_camel
from typing import List, Optional

from storefront.schemas.product import ProductSnapshot, SizeOption


def line_key(product_id: str, size_name: Optional[str] = None) -> str:
    """Composite line key: same product in different sizes gets separate lines."""
    return f"{product_id}_{size_name}" if size_name else product_id


# A single cart line (product snapshot + quantity)
class CartItem(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, validate_assignment=True
    )

    key: str = Field(frozen=True)
    product: ProductSnapshot = Field(frozen=True)
    selected_size: Optional[SizeOption] = Field(default=None, frozen=True)
    quantity: int = Field(ge=1)
    # Resolved once when the line is created
    unit_price: float = Field(ge=0, frozen=True)

    @computed_field
    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price

    @property
    def is_low_stock(self) -> bool:
        return self.product.stock_quantity <= self.product.low_stock_threshold


# Read-only summary of the active cart
class CartOut(BaseModel):
    identity: str
    items: List[CartItem]
    total: float
    items_count: int
