# storefront/utils/delivery_client.py
import httpx
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote, urljoin

from storefront.config import settings
from storefront.services.exceptions import PricingServiceUnavailable

logger = logging.getLogger(__name__)


def unwrap(response: httpx.Response) -> Any:
    # Remote API answers with {"success": bool, "data": ..., "error": ...}
    body = response.json()
    if not isinstance(body, dict) or not body.get("success"):
        error = body.get("error") if isinstance(body, dict) else None
        raise ValueError(error or "Unsuccessful response envelope")
    return body.get("data")


class DeliveryApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Transport is injectable so tests can plug in httpx.MockTransport
        self.base_url = base_url or settings.API_BASE_URL
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = urljoin(self.base_url, path)
        async with self._client() as client:
            try:
                response = await client.request(method, url, json=payload)
                response.raise_for_status()
                return unwrap(response)
            except (httpx.RequestError, httpx.HTTPStatusError, ValueError) as e:
                logger.error(f"Delivery service {method} {path} failed: {e}")
                raise PricingServiceUnavailable(str(e)) from e

    async def get_options(self) -> Dict[str, Any]:
        # Zones, time slots and express policy
        return await self._request("GET", "/delivery/options")

    async def get_zone(self, city: str) -> Dict[str, Any]:
        return await self._request("GET", f"/delivery/zone/{quote(city, safe='')}")

    async def calculate_fee(
        self, subtotal: float, city: Optional[str], is_express: bool, time_slot: str, customer_tier: str
    ) -> Dict[str, Any]:
        payload = {
            "subtotal": subtotal,
            "city": city or "other",
            "isExpress": is_express,
            "timeSlot": time_slot,
            "customerTier": customer_tier,
        }
        return await self._request("POST", "/delivery/calculate-fee", payload)

    async def free_delivery_progress(self, subtotal: float, city: Optional[str]) -> Dict[str, Any]:
        payload = {"subtotal": subtotal, "city": city or "other"}
        return await self._request("POST", "/delivery/free-delivery-progress", payload)
