# storefront/services/exceptions.py
"""Cart, checkout and pricing exceptions."""
from typing import Optional


class CartError(Exception):
    """Base for rejected cart mutations. The cart is left unchanged."""

    def __init__(self, message: str, product_id: Optional[str] = None):
        self.message = message
        self.product_id = product_id
        super().__init__(message)


class ProductUnavailable(CartError):
    """Product has been deactivated."""


class OutOfStock(CartError):
    """Product has no stock left."""


class InsufficientStock(CartError):
    """Requested quantity would exceed the product's stock."""

    def __init__(self, message: str, product_id: Optional[str] = None, available_to_add: int = 0):
        self.available_to_add = available_to_add
        super().__init__(message, product_id)


class CheckoutError(Exception):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class StaleStock(CheckoutError):
    """Live product data no longer covers a cart line."""

    def __init__(self, product_id: str, product_name: str, message: str) -> None:
        super().__init__("stale_stock", message)
        self.product_id = product_id
        self.product_name = product_name


class EmptyCart(CheckoutError):
    def __init__(self) -> None:
        super().__init__("empty_cart", "Cart is empty")


class InvalidDeliveryDate(CheckoutError):
    def __init__(self, message: str = "Orders must be placed at least 1 day in advance") -> None:
        super().__init__("invalid_delivery_date", message)


class PricingServiceUnavailable(Exception):
    """Delivery pricing service could not be reached or answered with an error."""

    pass
