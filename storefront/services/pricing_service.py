# storefront/services/pricing_service.py
"""
Async delivery pricing with graceful degradation.

Remote answers are preferred; any service failure falls back to the local
calculator over the currently loaded rules (or ``FALLBACK_RULES``). Each
request kind carries a monotonic sequence number so a late response never
replaces a result published by a newer request.
"""
import logging
from typing import Optional

from pydantic import ValidationError

from storefront.schemas.delivery import DeliveryZone, FeeResult, ProgressResult
from storefront.services.delivery import DeliveryCalculator
from storefront.services.exceptions import PricingServiceUnavailable
from storefront.services.pricing_rules import FALLBACK_RULES, PricingRules
from storefront.utils.delivery_client import DeliveryApiClient

logger = logging.getLogger(__name__)


class RequestSequencer:
    """Hands out increasing request numbers and accepts only the newest result."""

    def __init__(self):
        self._issued = 0
        self._published = 0

    def next(self) -> int:
        self._issued += 1
        return self._issued

    def accept(self, seq: int) -> bool:
        if seq <= self._published:
            return False
        self._published = seq
        return True

    @property
    def latest(self) -> int:
        return self._issued


class DeliveryPricingService:
    def __init__(self, client: Optional[DeliveryApiClient] = None, rules: Optional[PricingRules] = None):
        # client=None keeps every computation local
        self.client = client
        self._rules = rules or FALLBACK_RULES
        self.using_fallback = rules is None
        self.latest_quote: Optional[FeeResult] = None
        self.latest_progress: Optional[ProgressResult] = None
        self._rules_seq = RequestSequencer()
        self._quote_seq = RequestSequencer()
        self._progress_seq = RequestSequencer()

    @property
    def rules(self) -> PricingRules:
        return self._rules

    @property
    def calculator(self) -> DeliveryCalculator:
        return DeliveryCalculator(self._rules)

    async def load_rules(self) -> PricingRules:
        """Fetch delivery options; keeps working on fallback rules if the service is down."""
        seq = self._rules_seq.next()
        fallback = False
        try:
            if self.client is None:
                raise PricingServiceUnavailable("No delivery service configured")
            rules = PricingRules.from_options_payload(await self.client.get_options())
        except (PricingServiceUnavailable, ValidationError, ValueError) as e:
            logger.warning(f"Using fallback delivery rules: {e}")
            rules, fallback = FALLBACK_RULES, True

        if self._rules_seq.accept(seq):
            self._rules = rules
            self.using_fallback = fallback
        else:
            logger.debug(f"Discarding stale delivery options response #{seq}")
        return rules

    async def resolve_zone(self, city: Optional[str]) -> DeliveryZone:
        if city and self.client is not None:
            try:
                data = await self.client.get_zone(city)
                return DeliveryZone(
                    id=data["zone"],
                    name=data["zoneName"],
                    base_fee=data["fee"],
                    free_threshold=data["freeThreshold"],
                    covered_cities=data.get("cities") or [],
                )
            except (PricingServiceUnavailable, ValidationError, KeyError, TypeError) as e:
                logger.warning(f"Zone lookup for '{city}' fell back to local rules: {e}")
        return self._rules.resolve_zone(city)

    async def quote(
        self,
        subtotal: float,
        city: Optional[str] = None,
        is_express: bool = False,
        time_slot: Optional[str] = None,
        tier: str = "regular",
    ) -> FeeResult:
        seq = self._quote_seq.next()
        slot_id = time_slot or self._rules.default_time_slot_id
        result = None
        if subtotal > 0 and self.client is not None:
            try:
                data = await self.client.calculate_fee(subtotal, city, is_express, slot_id, tier)
                result = FeeResult.model_validate(data)
            except (PricingServiceUnavailable, ValidationError) as e:
                logger.warning(f"Delivery fee computed locally: {e}")
        if result is None:
            result = self.calculator.calculate_fee(subtotal, city, is_express, slot_id, tier)

        if self._quote_seq.accept(seq):
            self.latest_quote = result
        else:
            logger.debug(f"Discarding stale delivery fee response #{seq}")
        return result

    async def progress(self, subtotal: float, city: Optional[str] = None) -> ProgressResult:
        seq = self._progress_seq.next()
        result = None
        if subtotal > 0 and self.client is not None:
            try:
                data = await self.client.free_delivery_progress(subtotal, city)
                result = ProgressResult.model_validate(data)
            except (PricingServiceUnavailable, ValidationError) as e:
                logger.warning(f"Free delivery progress computed locally: {e}")
        if result is None:
            result = self.calculator.calculate_free_delivery_progress(subtotal, city)

        if self._progress_seq.accept(seq):
            self.latest_progress = result
        return result
