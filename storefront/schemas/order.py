# storefront/schemas/order.py
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import date

from storefront.schemas.delivery import FeeResult


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Delivery address
class Address(WireModel):
    street: str
    city: str
    postal_code: Optional[str] = None
    country: str = "Sri Lanka"


# Customer contact details submitted at checkout
class CustomerInfo(WireModel):
    name: str
    email: str
    phone: Optional[str] = None
    address: Address


# Input for CheckoutOrchestrator.prepare_order
class CheckoutRequest(WireModel):
    customer_info: CustomerInfo
    delivery_date: Optional[date] = None
    time_slot: Optional[str] = None
    is_express: bool = False
    customer_tier: str = "regular"
    special_instructions: Optional[str] = None
    payment_method: str = "cash_on_delivery"


# Order line sent to the order service
class OrderItemPayload(WireModel):
    product_id: str
    name: str
    size: Optional[str] = None
    quantity: int = Field(ge=1)
    unit_price: float
    line_total: float


# Final payable order, ready for submission
class OrderPayload(WireModel):
    customer_info: CustomerInfo
    items: List[OrderItemPayload]
    subtotal: float
    delivery_fee: int
    delivery: FeeResult
    total: float
    delivery_date: Optional[date] = None
    time_slot: Optional[str] = None
    is_express: bool = False
    customer_tier: str = "regular"
    special_instructions: Optional[str] = None
    payment_method: str
