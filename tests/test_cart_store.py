"""
Unit Tests: CartStore

Covers add with the stock ceiling, remove, set_quantity, clear, the
derived totals and write-through persistence.
"""

import pytest

from storefront.core.cart import CART_STORAGE_KEY, CartItem, CartStore, ProductSnapshot
from storefront.models.product import Product

from .fakes import product_data, snapshot


class TestAdd:

    def test_add_new_product_creates_line_with_quantity_one(self, cart):
        notice = cart.add(snapshot("p1", stock=5))

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 1
        assert cart.items[0].available_stock == 5
        assert notice.kind == "success"
        assert notice.title_key == "cart.addedToCart"

    def test_add_existing_product_increments_quantity(self, cart):
        cart.add(snapshot("p1", stock=5))
        cart.add(snapshot("p1", stock=5))

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_add_at_stock_ceiling_is_refused(self, cart):
        for _ in range(3):
            cart.add(snapshot("p1", stock=3))

        notice = cart.add(snapshot("p1", stock=3))

        assert cart.items[0].quantity == 3
        assert notice.is_error
        assert notice.title_key == "cart.insufficientStock"
        assert notice.description_key == "cart.insufficientStockDescription"

    def test_refused_add_does_not_persist(self, cart, storage):
        cart.add(snapshot("p1", stock=1))
        before = storage.load(CART_STORAGE_KEY)

        cart.add(snapshot("p1", stock=1))

        assert storage.load(CART_STORAGE_KEY) == before

    def test_ceiling_uses_the_first_snapshot(self, cart):
        cart.add(snapshot("p1", stock=1))

        # A later, larger stock figure does not refresh the line
        notice = cart.add(snapshot("p1", stock=10))

        assert notice.is_error
        assert cart.items[0].available_stock == 1

    def test_line_ids_stay_unique(self, cart):
        for product_id in ("p1", "p2", "p1", "p3", "p2"):
            cart.add(snapshot(product_id, stock=10))

        ids = [item.id for item in cart.items]
        assert sorted(ids) == ["p1", "p2", "p3"]
        assert len(ids) == len(set(ids))

    def test_notice_can_be_popped_once(self, cart):
        cart.add(snapshot("p1"))

        assert cart.pop_notice() is not None
        assert cart.pop_notice() is None


class TestRemoveAndQuantity:

    def test_remove_drops_the_line(self, cart):
        cart.add(snapshot("p1"))
        cart.add(snapshot("p2"))

        cart.remove("p1")

        assert [item.id for item in cart.items] == ["p2"]

    def test_remove_unknown_id_is_a_no_op(self, cart, storage):
        cart.add(snapshot("p1"))
        before = storage.load(CART_STORAGE_KEY)

        cart.remove("nope")

        assert storage.load(CART_STORAGE_KEY) == before
        assert len(cart.items) == 1

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_set_quantity_non_positive_removes(self, cart, quantity):
        cart.add(snapshot("p1"))

        cart.set_quantity("p1", quantity)

        assert cart.is_empty

    def test_set_quantity_is_not_capped_by_stock(self, cart):
        cart.add(snapshot("p1", stock=2))

        cart.set_quantity("p1", 7)

        assert cart.get("p1").quantity == 7

    def test_set_quantity_unknown_id_is_ignored(self, cart):
        cart.set_quantity("nope", 3)

        assert cart.is_empty

    def test_clear_empties_the_cart(self, cart):
        cart.add(snapshot("p1"))
        cart.add(snapshot("p2"))

        cart.clear()

        assert cart.is_empty
        assert cart.total == 0


class TestTotals:

    def test_total_subtracts_unit_discount(self, cart):
        cart.add(snapshot("p1", price=2500, discount=500, stock=5))
        cart.set_quantity("p1", 2)

        assert cart.total == 4000
        assert cart.discount_total == 1000
        assert cart.item_count == 2

    def test_totals_follow_every_change(self, cart):
        cart.add(snapshot("p1", price=1000, discount=0, stock=5))
        cart.add(snapshot("p2", price=300, discount=100, stock=5))
        cart.add(snapshot("p2", price=300, discount=100, stock=5))
        assert cart.total == 1000 + 2 * 200

        cart.remove("p1")
        assert cart.total == 400

        cart.set_quantity("p2", 5)
        assert cart.total == 1000
        assert cart.total == sum(item.line_total for item in cart.items)

    def test_products_map_has_quantities(self, cart):
        cart.add(snapshot("p1"))
        cart.add(snapshot("p1"))
        cart.add(snapshot("p2"))

        assert cart.products_map() == {"p1": 2, "p2": 1}


class TestPersistence:

    def test_every_mutation_is_written_through(self, cart, storage):
        cart.add(snapshot("p1"))
        assert storage.load(CART_STORAGE_KEY)[0]["quantity"] == 1

        cart.set_quantity("p1", 4)
        assert storage.load(CART_STORAGE_KEY)[0]["quantity"] == 4

        cart.clear()
        assert storage.load(CART_STORAGE_KEY) == []

    def test_cart_is_restored_from_storage(self, cart, storage):
        cart.add(snapshot("p1", price=2500, discount=500))
        cart.add(snapshot("p1", price=2500, discount=500))

        restored = CartStore(storage)

        assert restored.products_map() == {"p1": 2}
        assert restored.total == 4000

    def test_unusable_records_are_skipped_on_load(self, storage):
        storage.save(CART_STORAGE_KEY, [
            {"id": "p1", "name": "Tulpen", "price": 900, "quantity": 1, "available_stock": 3},
            {"id": "p2", "name": "Kapot"},
            {"id": "p3", "name": "Leeg", "price": 100, "quantity": 0},
        ])

        restored = CartStore(storage)

        assert [item.id for item in restored.items] == ["p1"]


class TestSnapshots:

    def test_snapshot_from_product(self):
        product = Product.model_validate(product_data("p9", price=1200, discount=200, stock=4))

        snap = ProductSnapshot.from_product(product)

        assert snap.id == "p9"
        assert snap.price == 1200
        assert snap.discount == 200
        assert snap.available_stock == 4
        assert snap.image == "https://img.test/p9.jpg"

    def test_unknown_stock_counts_as_zero(self, cart):
        product = Product.model_validate(product_data("p1", stock=None))

        snap = ProductSnapshot.from_product(product)
        cart.add(snap)

        # The first unit is always accepted; the next one hits the ceiling
        assert cart.items[0].available_stock == 0
        assert cart.add(snap).is_error

    def test_line_total(self):
        item = CartItem(id="p1", name="Rozen", price=2500, discount=500, quantity=3, available_stock=5)

        assert item.unit_total == 2000
        assert item.line_total == 6000


class TestStockScenario:

    def test_adds_stop_at_available_stock(self, cart):
        p1 = snapshot("p1", price=2500, discount=500, stock=5)
        cart.add(p1)
        cart.add(p1)
        assert cart.total == 4000

        notices = [cart.add(p1) for _ in range(5)]

        assert [n.is_error for n in notices] == [False, False, False, True, True]
        assert cart.get("p1").quantity == 5
        assert cart.total == 10000

    def test_remove_twice_is_idempotent(self, cart):
        cart.add(snapshot("p1"))
        cart.add(snapshot("p2"))

        cart.remove("p1")
        after_first = cart.to_dict()
        cart.remove("p1")

        assert cart.to_dict() == after_first


class TestDiscardOrdered:

    def test_ordered_lines_are_removed(self, cart, storage):
        cart.add(snapshot("p1"))
        cart.add(snapshot("p1"))
        cart.add(snapshot("p2"))

        cart.discard_ordered({"p1": 2, "p2": 1})

        assert cart.is_empty
        assert storage.load(CART_STORAGE_KEY) == []

    def test_unordered_lines_and_extra_units_stay(self, cart):
        cart.add(snapshot("p1"))
        cart.add(snapshot("p1"))
        cart.add(snapshot("p3"))

        cart.discard_ordered({"p1": 1, "p2": 4})

        assert cart.products_map() == {"p1": 1, "p3": 1}
