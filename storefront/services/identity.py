# storefront/services/identity.py
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

GUEST_CART_KEY = "cart_guest"


@dataclass(frozen=True)
class Identity:
    """Cart owner: a guest (no user id) or an authenticated user."""

    user_id: Optional[str] = None

    @classmethod
    def guest(cls) -> "Identity":
        return cls()

    @classmethod
    def user(cls, user_id) -> "Identity":
        if user_id is None or str(user_id) == "":
            raise ValueError("User identity requires an id")
        return cls(str(user_id))

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def storage_key(self) -> str:
        return GUEST_CART_KEY if self.is_guest else f"cart_user_{self.user_id}"

    def __str__(self) -> str:
        return "guest" if self.is_guest else f"user:{self.user_id}"


IdentityListener = Callable[[Identity], None]


class IdentityProvider:
    """Current user (or guest) plus login/logout notifications."""

    def __init__(self, initial: Optional[Identity] = None):
        self._current = initial or Identity.guest()
        self._listeners: List[IdentityListener] = []

    @property
    def current(self) -> Identity:
        return self._current

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def login(self, user_id) -> Identity:
        self._set(Identity.user(user_id))
        return self._current

    def logout(self) -> None:
        self._set(Identity.guest())

    def _set(self, identity: Identity) -> None:
        if identity == self._current:
            return
        logger.info(f"Identity changed: {self._current} -> {identity}")
        self._current = identity
        for listener in list(self._listeners):
            listener(identity)
