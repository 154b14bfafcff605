# storefront/services/cart_store.py
"""
Identity-scoped shopping cart.

The store owns the cart lines of exactly one identity at a time. Every
mutation is stock-checked and all-or-nothing; the resulting state is written
to the persistence collaborator afterwards. Identity switches save the old
cart, expose an empty cart, then load the new identity's cart.
"""
import logging
from typing import Callable, List, Optional, Union

from pydantic import ValidationError

from storefront.schemas.cart import CartItem, CartOut, line_key
from storefront.schemas.product import Product, ProductSnapshot, SizeOption
from storefront.services.exceptions import InsufficientStock, OutOfStock, ProductUnavailable
from storefront.services.identity import GUEST_CART_KEY, Identity, IdentityProvider
from storefront.services.incentives import IncentiveEvent, IncentiveTracker
from storefront.services.persistence import Persistence

logger = logging.getLogger(__name__)

CartListener = Callable[[Identity, List[CartItem]], None]
IncentiveListener = Callable[[IncentiveEvent], None]


def resolve_unit_price(product: Product, size: Optional[SizeOption] = None) -> float:
    # Size price, then discount price, then base price
    if size is not None:
        return size.price
    if product.discount_price:
        return product.discount_price
    return product.price


def _check_quantity(quantity, minimum: Optional[int] = 1) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError("Quantity must be a positive integer")
    if minimum is not None and quantity < minimum:
        raise ValueError("Quantity must be a positive integer")


class CartStore:
    def __init__(
        self,
        persistence: Persistence,
        identity_provider: Optional[IdentityProvider] = None,
        identity: Optional[Identity] = None,
        incentives: Optional[IncentiveTracker] = None,
    ):
        self.persistence = persistence
        if identity is None:
            identity = identity_provider.current if identity_provider else Identity.guest()
        self.identity = identity
        self.incentives = incentives or IncentiveTracker()
        self._items: List[CartItem] = []
        self._listeners: List[CartListener] = []
        self._incentive_listeners: List[IncentiveListener] = []

        if identity_provider is not None:
            identity_provider.subscribe(self.switch_identity)

        # Read once at mount
        self._items = self._load(self.identity)

    # ---- OBSERVERS ----
    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def on_incentive(self, listener: IncentiveListener) -> None:
        self._incentive_listeners.append(listener)

    def _notify(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            listener(self.identity, snapshot)

    # ---- DERIVED STATE ----
    @property
    def items(self) -> List[CartItem]:
        return [item.model_copy() for item in self._items]

    @property
    def cart_total(self) -> float:
        return sum(item.subtotal for item in self._items)

    @property
    def cart_items_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get_item(self, key: str) -> Optional[CartItem]:
        index = self._index(key)
        return self._items[index].model_copy() if index is not None else None

    def snapshot(self) -> CartOut:
        return CartOut(
            identity=str(self.identity),
            items=self.items,
            total=self.cart_total,
            items_count=self.cart_items_count,
        )

    def _index(self, key: str) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.key == key:
                return i
        return None

    def _product_quantity(self, product_id: str, exclude_key: Optional[str] = None) -> int:
        # All size lines of a product draw on the same stock
        return sum(
            item.quantity
            for item in self._items
            if item.product.id == product_id and item.key != exclude_key
        )

    # ---- MUTATIONS ----
    def add_to_cart(
        self,
        product: Product,
        quantity: int = 1,
        size: Union[str, SizeOption, None] = None,
    ) -> CartItem:
        _check_quantity(quantity)

        if not product.is_active:
            raise ProductUnavailable(f"{product.name} is currently unavailable", product.id)
        if product.stock_quantity <= 0:
            raise OutOfStock(f"{product.name} is out of stock", product.id)

        if isinstance(size, str):
            selected = product.find_size(size)
            if selected is None:
                raise ValueError(f"Unknown size '{size}' for {product.name}")
            size = selected

        key = line_key(product.id, size.name if size else None)
        index = self._index(key)
        line_quantity = self._items[index].quantity if index is not None else 0
        in_cart = self._product_quantity(product.id)

        if in_cart + quantity > product.stock_quantity:
            available = max(0, product.stock_quantity - in_cart)
            if available == 0:
                message = f"All {product.stock_quantity} available units of {product.name} are already in your cart"
            else:
                message = f"Only {available} more of {product.name} can be added (in cart: {in_cart})"
            raise InsufficientStock(message, product.id, available_to_add=available)

        was_empty = not self._items
        snapshot = ProductSnapshot.from_product(product)
        if index is not None:
            # Same resolved price; stock data refreshed from the product just checked
            item = self._items[index].model_copy(
                update={"quantity": line_quantity + quantity, "product": snapshot}
            )
            self._items[index] = item
        else:
            item = CartItem(
                key=key,
                product=snapshot,
                selected_size=size,
                quantity=quantity,
                unit_price=resolve_unit_price(product, size),
            )
            self._items.append(item)

        logger.info(f"Cart add: {key} x{quantity} ({self.identity})")
        self._commit()

        event = self.incentives.evaluate(
            is_guest=self.identity.is_guest,
            line_count=len(self._items),
            new_line=index is None,
            was_empty=was_empty,
            cart_total=self.cart_total,
            product_name=product.name,
        )
        if event is not None:
            for listener in list(self._incentive_listeners):
                listener(event)

        return item.model_copy()

    def update_quantity(self, key: str, quantity: int) -> Optional[CartItem]:
        _check_quantity(quantity, minimum=None)
        index = self._index(key)
        if index is None:
            return None
        if quantity <= 0:
            self.remove_from_cart(key)
            return None

        item = self._items[index]
        ceiling = item.product.stock_quantity - self._product_quantity(item.product.id, exclude_key=key)
        if ceiling < 1:
            self.remove_from_cart(key)
            return None
        if quantity > ceiling:
            logger.warning(f"Requested {quantity} of {key}, clamped to stock {ceiling}")
            quantity = ceiling

        item.quantity = quantity
        self._commit()
        return item.model_copy()

    def remove_from_cart(self, key: str) -> bool:
        index = self._index(key)
        if index is None:
            return False
        del self._items[index]
        logger.info(f"Cart remove: {key} ({self.identity})")
        self._commit()
        return True

    def clear_cart(self) -> None:
        self._items = []
        self._commit()

    # ---- IDENTITY ----
    def switch_identity(self, identity: Identity) -> None:
        """Save old cart, expose an empty cart, then load the new identity's cart."""
        if identity == self.identity:
            return

        if self._items:
            self._persist()

        previous = self.identity
        self.identity = identity
        self._items = []
        self._notify()

        self._items = self._load(identity)
        self._notify()
        logger.info(f"Cart switched {previous} -> {identity}: {len(self._items)} line(s) restored")

    def migrate_guest_cart(self, user_id) -> bool:
        """Move the guest cart to a user whose saved cart is empty. Existing user carts win."""
        user = Identity.user(user_id)
        if self.persistence.get(user.storage_key):
            logger.info(f"Skipping guest cart migration: {user} already has a cart")
            return False

        guest_items = self.persistence.get(GUEST_CART_KEY)
        if not guest_items:
            return False

        self.persistence.set(user.storage_key, guest_items)
        self.persistence.delete(GUEST_CART_KEY)
        logger.info(f"Migrated {len(guest_items)} guest cart line(s) to {user}")

        if self.identity == user:
            self._items = self._load(user)
            self._notify()
        elif self.identity.is_guest:
            self._items = []
            self._notify()
        return True

    # ---- PERSISTENCE ----
    def _commit(self) -> None:
        self._persist()
        self._notify()

    def _persist(self) -> None:
        payload = [item.model_dump(mode="json", by_alias=True) for item in self._items]
        try:
            self.persistence.set(self.identity.storage_key, payload)
        except Exception as e:
            # Writes are fire-and-forget; the in-memory cart stays authoritative
            logger.error(f"Failed to persist cart {self.identity.storage_key}: {e}")

    def _load(self, identity: Identity) -> List[CartItem]:
        raw = self.persistence.get(identity.storage_key) or []
        items: List[CartItem] = []
        seen = set()
        for entry in raw:
            try:
                item = CartItem.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"Dropping malformed cart line for {identity}: {e}")
                continue
            if item.key in seen:
                continue
            seen.add(item.key)
            items.append(item)
        return items
