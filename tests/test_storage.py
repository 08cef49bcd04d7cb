"""
Unit Tests: cart storage backends
"""

import json
import os

from storefront.core.cart import CartStore
from storefront.core.storage import JsonFileCartStorage, MemoryCartStorage

from .fakes import snapshot


class TestMemoryCartStorage:

    def test_load_missing_key_is_empty(self):
        assert MemoryCartStorage().load("cart") == []

    def test_saved_items_are_copied(self):
        storage = MemoryCartStorage()
        items = [{"id": "p1", "quantity": 1}]

        storage.save("cart", items)
        items[0]["quantity"] = 99

        assert storage.load("cart") == [{"id": "p1", "quantity": 1}]


class TestJsonFileCartStorage:

    def test_round_trip_through_a_new_instance(self, tmp_path):
        cart = CartStore(JsonFileCartStorage(str(tmp_path), "a" * 32))
        cart.add(snapshot("p1"))
        cart.add(snapshot("p1"))

        restored = CartStore(JsonFileCartStorage(str(tmp_path), "a" * 32))

        assert restored.products_map() == {"p1": 2}

    def test_sessions_do_not_share_documents(self, tmp_path):
        CartStore(JsonFileCartStorage(str(tmp_path), "a" * 32)).add(snapshot("p1"))

        other = CartStore(JsonFileCartStorage(str(tmp_path), "b" * 32))

        assert other.is_empty

    def test_other_keys_in_the_document_are_kept(self, tmp_path):
        storage = JsonFileCartStorage(str(tmp_path), "c" * 32)
        storage.save("wishlist", [{"id": "p7"}])

        storage.save("cart", [{"id": "p1"}])

        with open(storage.path, encoding="utf-8") as f:
            document = json.load(f)
        assert document == {"wishlist": [{"id": "p7"}], "cart": [{"id": "p1"}]}
        assert not os.path.exists(f"{storage.path}.tmp")

    def test_corrupt_document_loads_as_empty(self, tmp_path):
        storage = JsonFileCartStorage(str(tmp_path), "d" * 32)
        with open(storage.path, "w", encoding="utf-8") as f:
            f.write("{not json")

        assert storage.load("cart") == []

    def test_non_list_value_loads_as_empty(self, tmp_path):
        storage = JsonFileCartStorage(str(tmp_path), "e" * 32)
        with open(storage.path, "w", encoding="utf-8") as f:
            json.dump({"cart": "oops"}, f)

        assert storage.load("cart") == []
