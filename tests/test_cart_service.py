"""Tests for cart resolution, item mutation and merge."""

from decimal import Decimal

import pytest

from shopcart.data.models.cart import CartModel
from shopcart.domain.errors import (
    CartVersionConflict,
    InsufficientInventory,
    ItemNotFound,
    ProductNotFound,
    ProductUnavailable,
    VariantUnavailable,
)
from shopcart.domain.identity import Identity
from shopcart.repos.cart_repo import CartRepo
from shopcart.repos.product_repo import ProductRepo
from shopcart.services.cart_service import CartService

USER = Identity(user_id=1)
GUEST = Identity(session_id="guest-abc")


@pytest.fixture
def svc(db, notifications):
    return CartService(db, notifications)


def _stored(db, identity):
    return CartRepo(db).get_cart_by_owner(identity)


def _assert_totals(cart):
    expected_subtotal = sum((i["unit_price"] * i["quantity"] for i in cart["items"]), Decimal("0.00"))
    assert cart["subtotal"] == expected_subtotal
    assert cart["total_items"] == sum(i["quantity"] for i in cart["items"])


class TestGetCart:
    def test_creates_empty_cart_lazily(self, svc, db):
        cart = svc.get_cart(GUEST)
        assert cart["items"] == []
        assert cart["subtotal"] == Decimal("0.00")
        assert cart["session_id"] == "guest-abc"
        assert cart["expires_at"] is not None
        assert _stored(db, GUEST) is not None

    def test_user_cart_has_no_expiry(self, svc):
        cart = svc.get_cart(USER)
        assert cart["user_id"] == 1
        assert cart["expires_at"] is None

    def test_same_identity_returns_same_cart(self, svc):
        assert svc.get_cart(USER)["cart_id"] == svc.get_cart(USER)["cart_id"]

    def test_prunes_deleted_product_and_persists(self, svc, db, make_product):
        keep = make_product(price=Decimal("5.00"))
        gone = make_product(price=Decimal("7.00"))
        svc.add_item(USER, keep.id, 1)
        svc.add_item(USER, gone.id, 2)

        db.delete(ProductRepo(db).find_by_id(gone.id))
        db.commit()

        cart = svc.get_cart(USER)
        assert [i["product_id"] for i in cart["items"]] == [keep.id]
        assert cart["subtotal"] == Decimal("5.00")
        stored = _stored(db, USER)
        assert [i["product_id"] for i in stored.items] == [keep.id]
        assert stored.total_items == 1

        # drugi odczyt nic juz nie zmienia
        again = svc.get_cart(USER)
        assert again["version"] == cart["version"]
        assert again["items"] == cart["items"]

    def test_prunes_inactive_and_hidden_products(self, svc, db, make_product):
        inactive = make_product()
        hidden = make_product()
        svc.add_item(USER, inactive.id, 1)
        svc.add_item(USER, hidden.id, 1)

        inactive = ProductRepo(db).find_by_id(inactive.id)
        hidden = ProductRepo(db).find_by_id(hidden.id)
        inactive.status = "archived"
        hidden.is_visible = False
        db.commit()

        cart = svc.get_cart(USER)
        assert cart["items"] == []
        assert cart["total_items"] == 0

    def test_summary(self, svc, make_product):
        a = make_product(price=Decimal("2.50"))
        b = make_product(price=Decimal("1.00"))
        svc.add_item(GUEST, a.id, 2)
        svc.add_item(GUEST, b.id, 3)
        assert svc.get_summary(GUEST) == {
            "total_items": 5,
            "subtotal": Decimal("8.00"),
            "item_count": 2,
        }


class TestAddItem:
    def test_add_item(self, svc, make_product):
        product = make_product(price=Decimal("19.99"))
        cart = svc.add_item(USER, product.id, 3)
        assert len(cart["items"]) == 1
        assert cart["items"][0]["name"] == product.name
        assert cart["subtotal"] == Decimal("59.97")
        _assert_totals(cart)

    def test_same_product_twice_sums_quantity(self, svc, make_product):
        product = make_product()
        svc.add_item(USER, product.id, 2)
        cart = svc.add_item(USER, product.id, 3)
        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 5
        _assert_totals(cart)

    def test_variant_price_is_used(self, svc, make_product):
        product = make_product(
            price=Decimal("19.99"),
            variants=[{"id": "xl", "name": "Size", "value": "XL", "price": "22.99"}],
        )
        svc.add_item(USER, product.id, 1)
        cart = svc.add_item(USER, product.id, 1, variant_id="xl")
        assert len(cart["items"]) == 2
        assert cart["subtotal"] == Decimal("42.98")

    def test_inactive_variant_is_rejected(self, svc, make_product):
        product = make_product(variants=[{"id": "red", "is_active": False}, {"id": "blue", "is_active": True}])

        with pytest.raises(VariantUnavailable) as exc:
            svc.add_item(USER, product.id, 1, variant_id="red")
        assert exc.value.details == {"product_id": product.id, "variant_id": "red"}

        assert svc.add_item(USER, product.id, 1, variant_id="blue")["items"][0]["variant_id"] == "blue"

    def test_unknown_variant_is_rejected(self, svc, make_product):
        product = make_product(variants=[{"id": "blue"}])
        with pytest.raises(VariantUnavailable):
            svc.add_item(USER, product.id, 1, variant_id="green")

    def test_unknown_product(self, svc):
        with pytest.raises(ProductNotFound):
            svc.add_item(USER, 999, 1)

    def test_unavailable_product(self, svc, make_product):
        product = make_product(status="draft")
        with pytest.raises(ProductUnavailable):
            svc.add_item(USER, product.id, 1)

    def test_insufficient_inventory(self, svc, make_product):
        product = make_product(inventory=2)
        with pytest.raises(InsufficientInventory) as exc:
            svc.add_item(USER, product.id, 3)
        assert exc.value.details["available"] == 2
        assert exc.value.details["requested"] == 3

    def test_backorder_skips_inventory_check(self, svc, make_product):
        product = make_product(inventory=0, allow_backorder=True)
        cart = svc.add_item(USER, product.id, 4)
        assert cart["total_items"] == 4

    def test_untracked_skips_inventory_check(self, svc, make_product):
        product = make_product(inventory=0, track_inventory=False)
        cart = svc.add_item(USER, product.id, 4)
        assert cart["items"][0]["available_inventory"] is None

    def test_add_does_not_reserve(self, svc, make_product, inventory_of):
        product = make_product(inventory=5)
        svc.add_item(USER, product.id, 5)
        assert inventory_of(product.id) == 5

    def test_publishes_cart_updated(self, svc, make_product, publisher):
        product = make_product()
        svc.add_item(USER, product.id, 1)
        assert publisher.events("cart-updated")[0][0] == "user-1"


class TestUpdateItem:
    def test_update_quantity(self, svc, make_product):
        product = make_product(price=Decimal("3.00"))
        item_id = svc.add_item(USER, product.id, 1)["items"][0]["item_id"]
        cart = svc.update_item(USER, item_id, 4)
        assert cart["items"][0]["quantity"] == 4
        assert cart["subtotal"] == Decimal("12.00")

    def test_update_to_zero_removes_item(self, svc, make_product):
        product = make_product()
        item_id = svc.add_item(USER, product.id, 1)["items"][0]["item_id"]
        cart = svc.update_item(USER, item_id, 0)
        assert cart["items"] == []
        assert cart["subtotal"] == Decimal("0.00")
        assert cart["total_items"] == 0

    def test_unknown_item(self, svc):
        with pytest.raises(ItemNotFound):
            svc.update_item(USER, "missing", 2)


class TestRemoveAndClear:
    def test_remove_item(self, svc, make_product):
        a = make_product()
        b = make_product()
        item_id = svc.add_item(USER, a.id, 1)["items"][0]["item_id"]
        svc.add_item(USER, b.id, 2)
        cart = svc.remove_item(USER, item_id)
        assert [i["product_id"] for i in cart["items"]] == [b.id]
        _assert_totals(cart)

    def test_remove_absent_item_is_noop(self, svc, make_product):
        product = make_product()
        before = svc.add_item(USER, product.id, 1)
        after = svc.remove_item(USER, "missing")
        assert after["items"] == before["items"]
        assert after["version"] == before["version"]

    def test_clear_cart(self, svc, make_product):
        product = make_product()
        svc.add_item(GUEST, product.id, 3)
        cart = svc.clear_cart(GUEST)
        assert cart["items"] == []
        assert cart["subtotal"] == Decimal("0.00")
        assert cart["total_items"] == 0


class TestMergeCart:
    def test_merge_sums_and_deletes_guest(self, svc, db, make_product):
        p1 = make_product(price=Decimal("4.00"))
        p2 = make_product(price=Decimal("6.00"))
        svc.add_item(USER, p1.id, 1)
        svc.add_item(USER, p2.id, 1)
        guest_cart_id = svc.add_item(GUEST, p1.id, 2)["cart_id"]

        cart = svc.merge_cart(1, "guest-abc")

        quantities = {i["product_id"]: i["quantity"] for i in cart["items"]}
        assert quantities == {p1.id: 3, p2.id: 1}
        _assert_totals(cart)
        assert CartRepo(db).get_cart(guest_cart_id) is None

    def test_merge_copies_new_lines(self, svc, make_product):
        p1 = make_product()
        svc.add_item(GUEST, p1.id, 2)
        cart = svc.merge_cart(1, "guest-abc")
        assert cart["user_id"] == 1
        assert cart["items"][0]["quantity"] == 2

    def test_empty_guest_cart_is_noop(self, svc, db, make_product):
        product = make_product()
        before = svc.add_item(USER, product.id, 1)
        guest_cart_id = svc.get_cart(GUEST)["cart_id"]

        after = svc.merge_cart(1, "guest-abc")

        assert after["items"] == before["items"]
        assert CartRepo(db).get_cart(guest_cart_id) is not None

    def test_merge_skips_inventory_validation(self, svc, db, make_product):
        product = make_product(inventory=3)
        svc.add_item(USER, product.id, 2)
        svc.add_item(GUEST, product.id, 3)
        cart = svc.merge_cart(1, "guest-abc")
        assert cart["items"][0]["quantity"] == 5


class TestOptimisticConcurrency:
    def test_retries_after_version_conflict(self, svc, make_product, monkeypatch):
        product = make_product()
        svc.get_cart(USER)

        original = CartRepo.update_cart_version
        calls = {"n": 0}

        def flaky(self, cart_id, old_version, new_data):
            calls["n"] += 1
            if calls["n"] == 1:
                return 0
            return original(self, cart_id, old_version, new_data)

        monkeypatch.setattr(CartRepo, "update_cart_version", flaky)

        cart = svc.add_item(USER, product.id, 2)
        assert cart["items"][0]["quantity"] == 2
        assert calls["n"] == 2

    def test_gives_up_after_repeated_conflicts(self, svc, make_product, monkeypatch):
        product = make_product()
        svc.get_cart(USER)
        monkeypatch.setattr(CartRepo, "update_cart_version", lambda self, *a, **kw: 0)

        with pytest.raises(CartVersionConflict):
            svc.add_item(USER, product.id, 1)

    def test_write_bumps_version(self, svc, db, make_product):
        product = make_product()
        v1 = svc.get_cart(USER)["version"]
        v2 = svc.add_item(USER, product.id, 1)["version"]
        assert v2 == v1 + 1
        assert _stored(db, USER).version == v2

    def test_stale_writer_is_rejected(self, db):
        repo = CartRepo(db)
        cart = repo.create_cart(CartModel(user_id=7, items=[], subtotal=0, total_items=0, version=1))
        assert repo.update_cart_version(cart.id, 1, {"version": 2}) == 1
        repo.commit()
        assert repo.update_cart_version(cart.id, 1, {"version": 2}) == 0
        repo.rollback()
