"""Shared pytest fixtures for the cart and delivery pricing tests."""

import pytest

from storefront.schemas.delivery import DeliveryZone, ExpressPolicy, TimeSlot
from storefront.schemas.product import Product, SizeOption
from storefront.services.cart_store import CartStore
from storefront.services.identity import IdentityProvider
from storefront.services.incentives import IncentiveTracker
from storefront.services.persistence import InMemoryPersistence
from storefront.services.pricing_rules import PricingRules


def make_product(**overrides) -> Product:
    """Build an active product with sensible defaults."""
    data = dict(id="p1", name="Chocolate Cake", price=2500, stock_quantity=10)
    data.update(overrides)
    return Product(**data)


@pytest.fixture
def product():
    return make_product()


@pytest.fixture
def sized_product():
    return make_product(
        id="p2",
        name="Ribbon Cake",
        price=3000,
        sizes=[SizeOption(name="1kg", price=3500), SizeOption(name="2kg", price=6000)],
    )


@pytest.fixture
def persistence():
    return InMemoryPersistence()


@pytest.fixture
def provider():
    return IdentityProvider()


@pytest.fixture
def store(persistence, provider):
    return CartStore(persistence, identity_provider=provider, incentives=IncentiveTracker(10000))


@pytest.fixture
def colombo_rules():
    """Colombo 500/8000 plus a catch-all zone; express 1.5 / 800."""
    return PricingRules(
        zones=[
            DeliveryZone(id="colombo", name="Colombo", base_fee=500, free_threshold=8000,
                         covered_cities=["colombo", "dehiwala"]),
            DeliveryZone(id="other", name="Other Areas", base_fee=1000, free_threshold=15000),
        ],
        time_slots=[
            TimeSlot(id="afternoon", name="12:00 PM - 6:00 PM", multiplier=1.0),
            TimeSlot(id="evening", name="6:00 PM - 9:00 PM", multiplier=1.0),
            TimeSlot(id="express", name="Express (within 4 hours)", multiplier=1.5, is_express_slot=True),
        ],
        express=ExpressPolicy(multiplier=1.5, minimum_fee=800),
    )
