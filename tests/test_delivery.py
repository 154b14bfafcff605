"""Tests for the delivery fee calculator.

Step order is free threshold -> express -> time slot -> tier -> rounding.
"""

import pytest

from storefront.schemas.delivery import DeliveryZone, TimeSlot
from storefront.services.delivery import DeliveryCalculator, round_fee
from storefront.services.pricing_rules import DEFAULT_RULES, PricingRules


@pytest.fixture
def calc(colombo_rules):
    return DeliveryCalculator(colombo_rules)


class TestRoundFee:
    def test_half_up(self):
        assert round_fee(251.5) == 252
        assert round_fee(250.49) == 250
        assert round_fee(0) == 0


class TestCalculateFee:
    def test_free_at_threshold(self, calc):
        result = calc.calculate_fee(8000, "Colombo", time_slot_id="afternoon", tier="regular")
        assert result.fee == 0
        assert result.is_free is True
        assert result.zone_id == "colombo"
        assert result.reason == "Free delivery (above threshold)"
        assert result.savings == 500

    def test_express_uses_minimum_fee(self, calc):
        result = calc.calculate_fee(5000, "Colombo", is_express=True)
        assert result.fee == 800
        assert result.is_free is False
        assert result.breakdown.base == 500
        assert result.breakdown.express_adj == 300
        assert result.reason == "Express delivery"

    def test_express_is_never_free(self, calc):
        result = calc.calculate_fee(20000, "Colombo", is_express=True)
        assert result.fee == 800
        assert result.is_free is False
        assert result.savings == 0

    def test_standard_fee_below_threshold(self, calc):
        result = calc.calculate_fee(5000, "Colombo")
        assert result.fee == 500
        assert result.is_free is False
        assert result.reason == "Standard delivery"
        assert result.savings == 0

    def test_gold_discount(self, calc):
        result = calc.calculate_fee(5000, "colombo", tier="gold")
        assert result.fee == 400
        assert result.breakdown.tier_adj == -100
        assert result.savings == 100
        assert result.reason == "Gold member discount"

    def test_steps_compose_in_order(self, calc):
        # max(500 * 1.5, 800) = 800 -> * 1.5 slot = 1200 -> * 0.5 premium = 600
        result = calc.calculate_fee(5000, "Colombo", is_express=True, time_slot_id="express", tier="premium")
        assert result.fee == 600
        assert result.breakdown.express_adj == 300
        assert result.breakdown.slot_adj == 400
        assert result.breakdown.tier_adj == -600
        assert result.reason == "Express delivery, Express time slot, Premium discount applied"

    def test_slot_multiplier_keeps_free_delivery_free(self, calc):
        result = calc.calculate_fee(9000, "Colombo", time_slot_id="express")
        assert result.fee == 0
        assert result.is_free is True

    def test_evening_reason(self, calc):
        assert calc.calculate_fee(100, "Colombo", time_slot_id="evening").reason == "Evening delivery"

    def test_unmatched_city_uses_default_zone(self, calc):
        result = calc.calculate_fee(5000, "Jaffna")
        assert result.zone_id == "other"
        assert result.zone_name == "Other Areas"
        assert result.fee == 1000

    def test_rounds_final_fee(self):
        rules = PricingRules(
            zones=[DeliveryZone(id="other", name="Other Areas", base_fee=503, free_threshold=9000)],
            time_slots=[TimeSlot(id="afternoon", name="PM")],
        )
        assert DeliveryCalculator(rules).calculate_fee(100, None, tier="premium").fee == 252

    def test_empty_cart(self, calc):
        result = calc.calculate_fee(0, "Colombo")
        assert result.fee == 0
        assert result.is_free is False
        assert result.reason == "No items in cart"

    def test_negative_subtotal_rejected(self, calc):
        with pytest.raises(ValueError):
            calc.calculate_fee(-1, "Colombo")

    def test_is_pure(self, calc):
        first = calc.calculate_fee(4321, "Dehiwala", is_express=True, tier="gold")
        second = calc.calculate_fee(4321, "Dehiwala", is_express=True, tier="gold")
        assert first == second

    def test_default_rules_are_used_without_arguments(self):
        result = DeliveryCalculator().calculate_fee(1000, "Kandy")
        assert result.zone_id == "kandy"
        assert result.fee == 800
        assert DeliveryCalculator().rules is DEFAULT_RULES


class TestFeeProperties:
    @pytest.mark.parametrize("is_express", [False, True])
    @pytest.mark.parametrize("tier", ["regular", "gold", "premium"])
    @pytest.mark.parametrize("slot", ["afternoon", "express"])
    def test_fee_does_not_increase_across_threshold(self, calc, is_express, tier, slot):
        below = calc.calculate_fee(7999, "Colombo", is_express, slot, tier)
        at = calc.calculate_fee(8000, "Colombo", is_express, slot, tier)
        above = calc.calculate_fee(12000, "Colombo", is_express, slot, tier)
        assert below.fee >= at.fee >= above.fee
        if not is_express:
            assert at.fee == 0

    @pytest.mark.parametrize("subtotal", [1, 500, 7999, 8000, 50000])
    @pytest.mark.parametrize("tier", ["regular", "gold", "premium"])
    def test_express_floor(self, calc, colombo_rules, subtotal, tier):
        result = calc.calculate_fee(subtotal, "Colombo", is_express=True, tier=tier)
        floor = colombo_rules.express.minimum_fee * colombo_rules.get_tier(tier).discount_factor
        assert result.fee >= round_fee(floor)
        assert result.is_free is False


class TestFreeDeliveryProgress:
    def test_below_threshold(self, calc):
        result = calc.calculate_free_delivery_progress(6000, "Colombo")
        assert result.threshold == 8000
        assert result.remaining == 2000
        assert result.progress == 75
        assert result.is_eligible is False
        assert result.message == "Add LKR 2000.00 more for free delivery!"

    def test_eligible(self, calc):
        result = calc.calculate_free_delivery_progress(9000, "Colombo")
        assert result.remaining == 0
        assert result.progress == 100
        assert result.is_eligible is True
        assert result.message == "You qualify for free delivery!"

    def test_default_zone_threshold(self, calc):
        result = calc.calculate_free_delivery_progress(3000, "Matara")
        assert result.zone_id == "other"
        assert result.threshold == 15000
        assert result.progress == 20

    def test_empty_cart(self, calc):
        result = calc.calculate_free_delivery_progress(0, "Colombo")
        assert result.progress == 0
        assert result.remaining == 8000
