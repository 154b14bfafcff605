# storefront/routes/delivery.py
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.schemas.delivery import FeeRequest, ProgressRequest
from storefront.services.delivery import DeliveryCalculator
from storefront.services.pricing_rules import DEFAULT_RULES, PricingRules

router = APIRouter(prefix="/delivery", tags=["Delivery"])
logger = logging.getLogger(__name__)


def get_rules() -> PricingRules:
    # Server-side rule table; overridable in tests via dependency_overrides
    return DEFAULT_RULES


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _valid_subtotal(subtotal) -> bool:
    return subtotal is not None and subtotal >= 0


# Calculate delivery fee with breakdown
@router.post("/calculate-fee")
def calculate_fee(payload: FeeRequest, rules: PricingRules = Depends(get_rules)):
    if not _valid_subtotal(payload.subtotal):
        return _error(400, "Valid subtotal is required")

    logger.info(
        f"Delivery fee request: subtotal={payload.subtotal} city={payload.city} "
        f"express={payload.is_express} slot={payload.time_slot} tier={payload.customer_tier}"
    )
    try:
        result = DeliveryCalculator(rules).calculate_fee(
            payload.subtotal, payload.city, payload.is_express, payload.time_slot, payload.customer_tier
        )
    except Exception as e:
        logger.error(f"Delivery fee calculation error: {e}")
        return _error(500, "Failed to calculate delivery fee")
    return {"success": True, "data": result.model_dump(by_alias=True)}


# Zones, time slots and express policy
@router.get("/options")
def get_options(rules: PricingRules = Depends(get_rules)):
    try:
        data = rules.to_options_payload()
    except Exception as e:
        logger.error(f"Delivery options error: {e}")
        return _error(500, "Failed to fetch delivery options")
    return {"success": True, "data": data}


# Resolve delivery zone for a city
@router.get("/zone/{city}")
def get_zone(city: str, rules: PricingRules = Depends(get_rules)):
    try:
        zone = rules.resolve_zone(city)
    except Exception as e:
        logger.error(f"Zone lookup error for '{city}': {e}")
        return _error(500, "Failed to determine delivery zone")
    return {
        "success": True,
        "data": {
            "zone": zone.id,
            "zoneName": zone.name,
            "fee": zone.base_fee,
            "freeThreshold": zone.free_threshold,
            "cities": zone.covered_cities,
        },
    }


# Progress toward the zone's free-delivery threshold
@router.post("/free-delivery-progress")
def free_delivery_progress(payload: ProgressRequest, rules: PricingRules = Depends(get_rules)):
    if not _valid_subtotal(payload.subtotal):
        return _error(400, "Valid subtotal is required")

    try:
        result = DeliveryCalculator(rules).calculate_free_delivery_progress(payload.subtotal, payload.city)
    except Exception as e:
        logger.error(f"Free delivery progress error: {e}")
        return _error(500, "Failed to calculate free delivery progress")
    return {"success": True, "data": result.model_dump(by_alias=True)}
