# storefront/utils/products_client.py
import httpx
import logging
from typing import Optional
from urllib.parse import quote, urljoin

from storefront.config import settings
from storefront.schemas.product import Product
from storefront.utils.delivery_client import unwrap

logger = logging.getLogger(__name__)


class ProductApiClient:
    """Reads authoritative product records (stock, active flag)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.API_BASE_URL
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    async def get_product(self, product_id: str) -> Optional[Product]:
        # Returns None for a product the server no longer knows
        url = urljoin(self.base_url, f"/products/{quote(product_id, safe='')}")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(url)
                if response.status_code == 404:
                    return None
                response.raise_for_status()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"Product lookup error for {product_id}: {e}")
                raise

        body = response.json()
        # Accept both the {"success", "data"} envelope and a bare product document
        data = unwrap(response) if isinstance(body, dict) and "success" in body else body
        return Product.model_validate(data)
