# storefront/services/delivery.py
"""
Delivery fee calculation.

Fee steps are applied in a fixed order: free-threshold check, express,
time-slot multiplier, tier discount, rounding. Express delivery is never
free; tier discounts apply on top of every other adjustment.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from storefront.schemas.delivery import FeeBreakdown, FeeResult, ProgressResult
from storefront.services.pricing_rules import DEFAULT_RULES, PricingRules

CURRENCY = "LKR"

TIER_REASONS = {
    "premium": "Premium discount applied",
    "gold": "Gold member discount",
}


def round_fee(amount: float) -> int:
    """Round half-up to the nearest whole currency unit."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class DeliveryCalculator:
    def __init__(self, rules: Optional[PricingRules] = None):
        self.rules = rules or DEFAULT_RULES

    def calculate_fee(
        self,
        subtotal: float,
        city: Optional[str] = None,
        is_express: bool = False,
        time_slot_id: Optional[str] = None,
        tier: Optional[str] = "regular",
    ) -> FeeResult:
        if subtotal < 0:
            raise ValueError("Subtotal cannot be negative")

        zone = self.rules.resolve_zone(city)
        if subtotal == 0:
            return FeeResult(
                fee=0, zone_id=zone.id, zone_name=zone.name,
                is_free=False, reason="No items in cart",
            )

        # 1. Free threshold
        is_free = subtotal >= zone.free_threshold
        fee = 0.0 if is_free else float(zone.base_fee)
        base = fee

        # 2. Express overrides free delivery
        express_adj = 0.0
        if is_express:
            policy = self.rules.express
            adjusted = max(fee * policy.multiplier, policy.minimum_fee)
            express_adj = adjusted - fee
            fee = adjusted
            is_free = False

        # 3. Time slot
        slot = self.rules.get_time_slot(time_slot_id)
        adjusted = fee * slot.multiplier
        slot_adj = adjusted - fee
        fee = adjusted

        # 4. Tier discount
        customer_tier = self.rules.get_tier(tier)
        adjusted = fee * customer_tier.discount_factor
        tier_adj = adjusted - fee
        fee = adjusted

        final_fee = round_fee(fee)

        discounted = (base == 0 and not is_express) or customer_tier.discount_factor < 1
        savings = max(0, zone.base_fee - final_fee) if discounted else 0

        reasons = []
        if is_free:
            reasons.append("Free delivery (above threshold)")
        if is_express:
            reasons.append("Express delivery")
        if slot.is_express_slot:
            reasons.append("Express time slot")
        elif slot.id == "evening":
            reasons.append("Evening delivery")
        if tier_adj and customer_tier.id in TIER_REASONS:
            reasons.append(TIER_REASONS[customer_tier.id])

        return FeeResult(
            fee=final_fee,
            zone_id=zone.id,
            zone_name=zone.name,
            is_free=is_free,
            reason=", ".join(reasons) if reasons else "Standard delivery",
            breakdown=FeeBreakdown(
                base=base,
                express_adj=express_adj,
                slot_adj=slot_adj,
                tier_adj=tier_adj,
                threshold=zone.free_threshold,
            ),
            savings=savings,
        )

    def calculate_free_delivery_progress(self, subtotal: float, city: Optional[str] = None) -> ProgressResult:
        if subtotal < 0:
            raise ValueError("Subtotal cannot be negative")

        zone = self.rules.resolve_zone(city)
        threshold = zone.free_threshold
        remaining = max(0, threshold - subtotal)
        is_eligible = subtotal >= threshold

        return ProgressResult(
            threshold=threshold,
            current=subtotal,
            remaining=remaining,
            progress=min(100, round_fee(subtotal / threshold * 100)),
            is_eligible=is_eligible,
            zone_id=zone.id,
            zone_name=zone.name,
            message=(
                "You qualify for free delivery!" if is_eligible
                else f"Add {CURRENCY} {remaining:.2f} more for free delivery!"
            ),
        )
