# storefront/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict, AliasChoices
from pydantic.alias_generators import to_camel
from typing import Optional, List


# Base configuration for camelCase wire payloads
class WireBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Size variant with its own price (e.g. "1kg", "2kg")
class SizeOption(WireBase):
    name: str
    price: float = Field(ge=0)


# Authoritative product record as served by GET /products/{id}
class Product(WireBase):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    price: float = Field(ge=0)
    discount_price: Optional[float] = Field(default=None, ge=0)
    image: Optional[str] = None
    is_active: bool = True
    stock_quantity: int = 0
    low_stock_threshold: int = Field(default=5, ge=0)
    sizes: List[SizeOption] = Field(default_factory=list)

    def find_size(self, name: str) -> Optional[SizeOption]:
        return next((s for s in self.sizes if s.name == name), None)


# Denormalized copy of the product kept on a cart line
class ProductSnapshot(WireBase):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    image: Optional[str] = None
    is_active: bool = True
    stock_quantity: int = 0
    low_stock_threshold: int = 5

    @classmethod
    def from_product(cls, product: Product) -> "ProductSnapshot":
        return cls(
            id=product.id,
            name=product.name,
            image=product.image,
            is_active=product.is_active,
            stock_quantity=product.stock_quantity,
            low_stock_threshold=product.low_stock_threshold,
        )
