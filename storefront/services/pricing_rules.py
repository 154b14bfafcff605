# storefront/services/pricing_rules.py
"""
Delivery pricing configuration.

Holds the zone / time-slot / express / tier tables used by the delivery
calculator. ``DEFAULT_RULES`` mirrors the storefront's server table,
``FALLBACK_RULES`` is the minimal set used when the remote options service
cannot be reached.
"""
import logging
import unicodedata
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.schemas.delivery import (
    CustomerTier, DeliveryZone, ExpressPolicy, TierProgress, TimeSlot,
)

logger = logging.getLogger(__name__)

DEFAULT_ZONE_ID = "other"
DEFAULT_TIME_SLOT_ID = "afternoon"

DEFAULT_TIERS: List[CustomerTier] = [
    CustomerTier(id="regular", name="Regular Customer", discount_factor=1.0, min_lifetime_spend=0),
    CustomerTier(id="gold", name="Gold Member", discount_factor=0.8, min_lifetime_spend=25000),
    CustomerTier(id="premium", name="Premium Member", discount_factor=0.5, min_lifetime_spend=50000),
]


def normalize_city(city: Optional[str]) -> str:
    """Casefold, strip accents and collapse whitespace."""
    if not city:
        return ""
    decomposed = unicodedata.normalize("NFKD", city)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.casefold().split())


class PricingRules(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    zones: List[DeliveryZone]
    time_slots: List[TimeSlot] = Field(alias="timeSlots")
    express: ExpressPolicy = Field(default_factory=ExpressPolicy, alias="expressDelivery")
    tiers: List[CustomerTier] = Field(default_factory=lambda: list(DEFAULT_TIERS))
    default_zone_id: str = DEFAULT_ZONE_ID
    default_time_slot_id: str = DEFAULT_TIME_SLOT_ID

    @model_validator(mode="after")
    def _check_tables(self) -> "PricingRules":
        zone_ids = [z.id for z in self.zones]
        if len(set(zone_ids)) != len(zone_ids):
            raise ValueError("Duplicate delivery zone id")
        if self.default_zone_id not in zone_ids:
            raise ValueError(f"Default zone '{self.default_zone_id}' is not configured")
        slot_ids = [s.id for s in self.time_slots]
        if len(set(slot_ids)) != len(slot_ids):
            raise ValueError("Duplicate time slot id")
        if self.default_time_slot_id not in slot_ids:
            raise ValueError(f"Default time slot '{self.default_time_slot_id}' is not configured")
        if "regular" not in {t.id for t in self.tiers}:
            raise ValueError("Tier table must contain 'regular'")
        return self

    # ---- LOOKUPS ----
    @property
    def default_zone(self) -> DeliveryZone:
        return self.zone_by_id(self.default_zone_id)

    def zone_by_id(self, zone_id: str) -> DeliveryZone:
        for zone in self.zones:
            if zone.id == zone_id:
                return zone
        return self.default_zone

    def resolve_zone(self, city: Optional[str]) -> DeliveryZone:
        """Map a city to its zone by normalized containment; unmatched cities get the default zone."""
        needle = normalize_city(city)
        if not needle:
            return self.default_zone
        for zone in self.zones:
            if zone.id == self.default_zone_id:
                continue
            for covered in zone.covered_cities:
                covered_norm = normalize_city(covered)
                if covered_norm and covered_norm in needle:
                    return zone
        return self.default_zone

    def get_time_slot(self, slot_id: Optional[str]) -> TimeSlot:
        for slot in self.time_slots:
            if slot.id == slot_id:
                return slot
        return next(s for s in self.time_slots if s.id == self.default_time_slot_id)

    def get_tier(self, tier_id: Optional[str]) -> CustomerTier:
        for tier in self.tiers:
            if tier.id == tier_id:
                return tier
        return next(t for t in self.tiers if t.id == "regular")

    # ---- WIRE FORMAT ----
    @classmethod
    def from_options_payload(cls, data: Dict[str, Any]) -> "PricingRules":
        """Build rules from the GET /delivery/options payload."""
        zones = [DeliveryZone.model_validate(z) for z in data.get("zones") or []]
        slots = [TimeSlot.model_validate(s) for s in data.get("timeSlots") or []]
        if not zones or not slots:
            raise ValueError("Delivery options payload has no zones or time slots")

        zone_ids = {z.id for z in zones}
        if DEFAULT_ZONE_ID in zone_ids:
            default_zone = DEFAULT_ZONE_ID
        else:
            # Prefer a catch-all zone without covered cities
            default_zone = next((z.id for z in zones if not z.covered_cities), zones[-1].id)
            logger.info(f"No '{DEFAULT_ZONE_ID}' zone in delivery options, defaulting to '{default_zone}'")

        slot_ids = {s.id for s in slots}
        default_slot = DEFAULT_TIME_SLOT_ID if DEFAULT_TIME_SLOT_ID in slot_ids else slots[0].id

        express = data.get("expressDelivery")
        tiers = data.get("customerTiers")
        return cls(
            zones=zones,
            time_slots=slots,
            express=ExpressPolicy.model_validate(express) if express else ExpressPolicy(),
            tiers=[CustomerTier.model_validate(t) for t in tiers] if tiers else list(DEFAULT_TIERS),
            default_zone_id=default_zone,
            default_time_slot_id=default_slot,
        )

    def to_options_payload(self) -> Dict[str, Any]:
        return {
            "zones": [z.model_dump(by_alias=True) for z in self.zones],
            "timeSlots": [s.model_dump(by_alias=True) for s in self.time_slots],
            "expressDelivery": self.express.model_dump(by_alias=True),
            "customerTiers": [t.model_dump(by_alias=True) for t in self.tiers],
        }


# ---- CUSTOMER TIERS ----
def tier_for_lifetime_spend(total_spend: float, rules: Optional[PricingRules] = None) -> CustomerTier:
    """Highest tier whose lifetime-spend requirement is met."""
    tiers = (rules or DEFAULT_RULES).tiers
    eligible = [t for t in tiers if total_spend >= t.min_lifetime_spend]
    return max(eligible, key=lambda t: t.min_lifetime_spend)


def progress_to_next_tier(
    total_spend: float, current_tier: str, rules: Optional[PricingRules] = None
) -> Optional[TierProgress]:
    """None when already at the top tier."""
    tiers = sorted((rules or DEFAULT_RULES).tiers, key=lambda t: t.min_lifetime_spend)
    ids = [t.id for t in tiers]
    if current_tier not in ids or ids.index(current_tier) == len(tiers) - 1:
        return None
    nxt = tiers[ids.index(current_tier) + 1]
    return TierProgress(
        next_tier=nxt.id,
        next_tier_name=nxt.name,
        remaining=max(0, nxt.min_lifetime_spend - total_spend),
        progress=min(100, total_spend / nxt.min_lifetime_spend * 100),
    )


# ---- BUILT-IN RULE SETS ----
DEFAULT_RULES = PricingRules(
    zones=[
        DeliveryZone(id="colombo", name="Colombo District", base_fee=300, free_threshold=8000,
                     covered_cities=["colombo", "mount lavinia", "dehiwala", "moratuwa", "kotte", "maharagama"]),
        DeliveryZone(id="gampaha", name="Gampaha District", base_fee=500, free_threshold=9000,
                     covered_cities=["gampaha", "negombo", "kelaniya", "kadawatha", "ja-ela", "wattala"]),
        DeliveryZone(id="kalutara", name="Kalutara District", base_fee=600, free_threshold=10000,
                     covered_cities=["kalutara", "panadura", "horana", "beruwala", "aluthgama"]),
        DeliveryZone(id="kandy", name="Kandy District", base_fee=800, free_threshold=12000,
                     covered_cities=["kandy", "peradeniya", "gampola", "nawalapitiya"]),
        DeliveryZone(id="other", name="Other Areas", base_fee=1000, free_threshold=15000),
    ],
    time_slots=[
        TimeSlot(id="morning", name="8:00 AM - 12:00 PM", multiplier=1.0),
        TimeSlot(id="afternoon", name="12:00 PM - 6:00 PM", multiplier=1.0),
        TimeSlot(id="evening", name="6:00 PM - 9:00 PM", multiplier=1.0),
        TimeSlot(id="express", name="Express (within 4 hours)", multiplier=1.5, is_express_slot=True),
    ],
    express=ExpressPolicy(multiplier=1.5, minimum_fee=800,
                          description="Same-day delivery (additional charges apply)"),
)

FALLBACK_RULES = PricingRules(
    zones=[DeliveryZone(id="other", name="Other Areas", base_fee=500, free_threshold=9000)],
    time_slots=[TimeSlot(id="afternoon", name="12:00 PM - 6:00 PM", multiplier=1.0)],
    express=ExpressPolicy(multiplier=1.5, minimum_fee=800),
)
