# storefront/schemas/delivery.py
from pydantic import AliasChoices, BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional

TierId = Literal["regular", "gold", "premium"]


# Immutable camelCase record used for pricing configuration
class RuleRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# Geographic grouping with its own fee and free-delivery threshold
class DeliveryZone(RuleRecord):
    id: str
    name: str
    base_fee: float = Field(alias="fee", ge=0)
    free_threshold: float = Field(gt=0)
    covered_cities: List[str] = Field(default_factory=list, alias="cities")


# Delivery window; multiplier applies after the express step
class TimeSlot(RuleRecord):
    id: str
    name: str
    multiplier: float = Field(default=1.0, ge=1.0)
    is_express_slot: bool = False


# Express fee = max(base * multiplier, minimum_fee)
class ExpressPolicy(RuleRecord):
    multiplier: float = Field(default=1.5, ge=1.0)
    minimum_fee: float = Field(default=800, ge=0)
    description: Optional[str] = None


# Customer classification granting a multiplicative delivery discount
class CustomerTier(RuleRecord):
    id: TierId
    name: str
    discount_factor: float = Field(gt=0, le=1)
    min_lifetime_spend: float = Field(default=0, ge=0)


# Signed per-step deltas of a fee computation.
# Also reads the pricing server's shape (baseFee, appliedDiscounts, ...); unknown keys are dropped.
class FeeBreakdown(RuleRecord):
    base: float = Field(validation_alias=AliasChoices("base", "baseFee"), serialization_alias="base")
    express_adj: float = 0
    slot_adj: float = 0
    tier_adj: float = 0
    threshold: float


# Result of calculate_fee
class FeeResult(RuleRecord):
    fee: int
    zone_id: str = Field(alias="zone")
    zone_name: str
    is_free: bool
    reason: str
    breakdown: Optional[FeeBreakdown] = None
    savings: float = 0


# Result of calculate_free_delivery_progress
class ProgressResult(RuleRecord):
    threshold: float
    current: float
    remaining: float
    progress: int = Field(ge=0, le=100)
    is_eligible: bool
    zone_id: str = Field(alias="zone")
    zone_name: str
    message: str


# Progress toward the next customer tier
class TierProgress(RuleRecord):
    next_tier: TierId
    next_tier_name: str
    remaining: float
    progress: float


# Request body for POST /delivery/calculate-fee
class FeeRequest(RuleRecord):
    subtotal: Optional[float] = None
    city: Optional[str] = None
    is_express: bool = False
    time_slot: str = "afternoon"
    customer_tier: str = "regular"


# Request body for POST /delivery/free-delivery-progress
class ProgressRequest(RuleRecord):
    subtotal: Optional[float] = None
    city: Optional[str] = None
