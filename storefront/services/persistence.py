# storefront/services/persistence.py
"""
Key-value storage for cart snapshots.

Keys are ``cart_guest`` or ``cart_user_{id}``; values are JSON-compatible
lists of serialized cart lines.
"""
import copy
import logging
from typing import Any, Callable, Dict, Optional, Protocol

from sqlalchemy.orm import Session

from storefront.database import SessionLocal
from storefront.models.cart import CartSnapshot

logger = logging.getLogger(__name__)


class Persistence(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryPersistence:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str) -> Optional[Any]:
        # Hand out copies so callers cannot mutate stored snapshots
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


class SqlPersistence:
    """Stores snapshots in the cart_snapshots table."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[Any]:
        with self.session_factory() as db:
            row = db.query(CartSnapshot).filter(CartSnapshot.key == key).first()
            return row.payload if row else None

    def set(self, key: str, value: Any) -> None:
        with self.session_factory() as db:
            row = db.query(CartSnapshot).filter(CartSnapshot.key == key).first()
            if row:
                row.payload = value
            else:
                db.add(CartSnapshot(key=key, payload=value))
            db.commit()
        logger.debug(f"Cart snapshot saved: {key}")

    def delete(self, key: str) -> None:
        with self.session_factory() as db:
            db.query(CartSnapshot).filter(CartSnapshot.key == key).delete()
            db.commit()
