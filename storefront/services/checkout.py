# storefront/services/checkout.py
import asyncio
import logging
from datetime import date, timedelta
from typing import Callable, Optional

from storefront.schemas.order import CheckoutRequest, OrderItemPayload, OrderPayload
from storefront.services.cart_store import CartStore
from storefront.services.exceptions import EmptyCart, InvalidDeliveryDate, StaleStock
from storefront.services.pricing_service import DeliveryPricingService
from storefront.utils.products_client import ProductApiClient

logger = logging.getLogger(__name__)


class CheckoutOrchestrator:
    """Turns the active cart into a payable order after re-validating live stock."""

    def __init__(
        self,
        cart: CartStore,
        pricing: DeliveryPricingService,
        products: ProductApiClient,
        today: Optional[Callable[[], date]] = None,
    ):
        self.cart = cart
        self.pricing = pricing
        self.products = products
        self.today = today or date.today

    def _check_delivery_date(self, delivery_date: Optional[date]) -> None:
        # At least one day of advance notice
        if delivery_date is not None and delivery_date < self.today() + timedelta(days=1):
            raise InvalidDeliveryDate()

    async def prepare_order(self, request: CheckoutRequest) -> OrderPayload:
        # 1. Snapshot
        items = self.cart.items
        if not items:
            raise EmptyCart()
        self._check_delivery_date(request.delivery_date)

        # 2. Live stock re-validation, summed per product across size lines
        required = {}
        names = {}
        for item in items:
            required[item.product.id] = required.get(item.product.id, 0) + item.quantity
            names[item.product.id] = item.product.name

        live_products = await asyncio.gather(
            *(self.products.get_product(product_id) for product_id in required)
        )
        for (product_id, quantity), live in zip(required.items(), live_products):
            name = live.name if live else names[product_id]
            if live is None or not live.is_active:
                raise StaleStock(product_id, name, f"{name} is no longer available")
            if live.stock_quantity < quantity:
                raise StaleStock(
                    product_id, name,
                    f"Only {max(0, live.stock_quantity)} of {name} left in stock, {quantity} in cart",
                )

        # 3. Delivery fee
        subtotal = sum(item.subtotal for item in items)
        city = request.customer_info.address.city
        delivery = await self.pricing.quote(
            subtotal, city, request.is_express, request.time_slot, request.customer_tier
        )

        # 4. Total
        total = subtotal + delivery.fee
        logger.info(
            f"Order prepared for {self.cart.identity}: subtotal={subtotal} delivery={delivery.fee} total={total}"
        )

        # 5. Payload (payment happens elsewhere)
        return OrderPayload(
            customer_info=request.customer_info,
            items=[
                OrderItemPayload(
                    product_id=item.product.id,
                    name=item.product.name,
                    size=item.selected_size.name if item.selected_size else None,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.subtotal,
                )
                for item in items
            ],
            subtotal=subtotal,
            delivery_fee=delivery.fee,
            delivery=delivery,
            total=total,
            delivery_date=request.delivery_date,
            time_slot=request.time_slot,
            is_express=request.is_express,
            customer_tier=request.customer_tier,
            special_instructions=request.special_instructions,
            payment_method=request.payment_method,
        )
