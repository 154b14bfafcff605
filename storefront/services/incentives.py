# storefront/services/incentives.py
import logging
from dataclasses import dataclass
from typing import Optional

from storefront.config import settings

logger = logging.getLogger(__name__)

FIRST_ADD = "first-add"
MULTIPLE_ITEMS = "multiple-items"
HIGH_VALUE = "high-value"


@dataclass(frozen=True)
class IncentiveEvent:
    trigger: str
    product_name: Optional[str] = None
    cart_total: float = 0


class IncentiveTracker:
    """
    Decides when a guest should be offered registration.

    At most one prompt per session: once a trigger fires no further events
    are produced, whether or not the prompt was dismissed. ``reset()`` starts
    a new session.
    """

    def __init__(self, high_value_threshold: Optional[float] = None):
        self.high_value_threshold = (
            high_value_threshold if high_value_threshold is not None
            else settings.HIGH_VALUE_CART_THRESHOLD
        )
        self.shown: Optional[IncentiveEvent] = None
        self.dismissed = False

    @property
    def active(self) -> bool:
        return self.shown is None and not self.dismissed

    def evaluate(
        self,
        is_guest: bool,
        line_count: int,
        new_line: bool,
        was_empty: bool,
        cart_total: float,
        product_name: Optional[str] = None,
    ) -> Optional[IncentiveEvent]:
        if not is_guest or not self.active:
            return None

        trigger = None
        if cart_total > self.high_value_threshold and line_count >= 2:
            trigger = HIGH_VALUE
        elif new_line and line_count == 3:
            trigger = MULTIPLE_ITEMS
        elif was_empty:
            trigger = FIRST_ADD

        if trigger is None:
            return None
        self.shown = IncentiveEvent(trigger=trigger, product_name=product_name, cart_total=cart_total)
        logger.info(f"Registration incentive triggered: {trigger}")
        return self.shown

    def dismiss(self) -> None:
        self.dismissed = True

    def reset(self) -> None:
        self.shown = None
        self.dismissed = False
