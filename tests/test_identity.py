"""Tests for identity switching and guest-to-user cart migration."""

import pytest

from storefront.services.cart_store import CartStore
from storefront.services.identity import Identity, IdentityProvider
from tests.conftest import make_product


class TestIdentity:
    def test_storage_keys(self):
        assert Identity.guest().storage_key == "cart_guest"
        assert Identity.user(42).storage_key == "cart_user_42"

    def test_user_requires_id(self):
        with pytest.raises(ValueError):
            Identity.user("")

    def test_provider_notifies_only_on_change(self):
        provider = IdentityProvider()
        seen = []
        provider.subscribe(seen.append)
        provider.logout()
        provider.login("u1")
        provider.login("u1")
        provider.logout()
        assert seen == [Identity.user("u1"), Identity.guest()]


class TestIdentitySwitch:
    def test_empty_state_is_observable_during_switch(self, store, provider, persistence, product):
        persistence.set("cart_user_u1", [
            {"key": "p7", "product": {"id": "p7", "name": "Eclair", "stockQuantity": 4},
             "quantity": 1, "unitPrice": 450},
        ])
        store.add_to_cart(product)
        seen = []
        store.subscribe(lambda identity, items: seen.append((str(identity), [i.key for i in items])))

        provider.login("u1")

        assert seen == [("user:u1", []), ("user:u1", ["p7"])]
        assert store.identity == Identity.user("u1")

    def test_old_cart_saved_before_switch(self, store, provider, persistence, product):
        store.add_to_cart(product, 2)
        persistence.set("cart_guest", [])  # simulate a lost write
        provider.login("u1")
        assert persistence.get("cart_guest")[0]["quantity"] == 2

    def test_identity_isolation(self, store, provider, product, sized_product):
        store.add_to_cart(product, 2)
        guest_items = store.items

        provider.login("u1")
        assert store.is_empty
        store.add_to_cart(sized_product, 1, "1kg")
        user_items = store.items

        provider.logout()
        assert store.items == guest_items

        provider.login("u1")
        assert store.items == user_items

    def test_switch_to_same_identity_is_noop(self, store, product):
        store.add_to_cart(product)
        seen = []
        store.subscribe(lambda identity, items: seen.append(items))
        store.switch_identity(Identity.guest())
        assert seen == []
        assert store.cart_items_count == 1

    def test_never_merges_carts(self, store, provider, persistence, product):
        persistence.set("cart_user_u1", [
            {"key": "p7", "product": {"id": "p7", "name": "Eclair", "stockQuantity": 4},
             "quantity": 1, "unitPrice": 450},
        ])
        store.add_to_cart(product)
        provider.login("u1")
        assert [i.key for i in store.items] == ["p7"]

    def test_store_follows_provider_from_mount(self, persistence, product):
        provider = IdentityProvider(Identity.user("u5"))
        store = CartStore(persistence, identity_provider=provider)
        store.add_to_cart(product)
        assert persistence.get("cart_user_u5")[0]["key"] == "p1"
        assert persistence.get("cart_guest") is None


class TestGuestMigration:
    def test_guest_cart_moves_to_empty_user_cart(self, store, provider, persistence, product):
        store.add_to_cart(product, 1)
        store.add_to_cart(make_product(id="p3", name="Tart"), 2)

        provider.login("u1")
        assert store.is_empty
        assert store.migrate_guest_cart("u1") is True

        assert [i.key for i in store.items] == ["p1", "p3"]
        assert store.cart_items_count == 3
        assert len(persistence.get("cart_user_u1")) == 2
        assert not persistence.get("cart_guest")

    def test_existing_user_cart_wins(self, store, provider, persistence, product):
        persistence.set("cart_user_u1", [
            {"key": "p7", "product": {"id": "p7", "name": "Eclair", "stockQuantity": 4},
             "quantity": 1, "unitPrice": 450},
        ])
        store.add_to_cart(product)
        provider.login("u1")

        assert store.migrate_guest_cart("u1") is False
        assert [i.key for i in store.items] == ["p7"]
        assert persistence.get("cart_guest")[0]["key"] == "p1"

    def test_nothing_to_migrate(self, store, provider):
        provider.login("u1")
        assert store.migrate_guest_cart("u1") is False

    def test_migrating_while_still_guest_clears_guest_cart(self, store, persistence, product):
        store.add_to_cart(product)
        assert store.migrate_guest_cart("u2") is True
        assert store.is_empty
        assert persistence.get("cart_user_u2")[0]["key"] == "p1"

        store.switch_identity(Identity.user("u2"))
        assert store.get_item("p1").quantity == 1
