"""Tests for the in-memory catalog's conditional stock decrement."""

import threading
from decimal import Decimal

import pytest


class TestProducts:
    def test_snapshot(self, catalog):
        product = catalog.get_product("tee")

        assert product.price == Decimal("20.00")
        assert product.stock == 10
        assert product.default_options == {}

    def test_unknown_product(self, catalog):
        assert catalog.get_product("ghost") is None

    def test_negative_stock_rejected(self, catalog):
        with pytest.raises(ValueError):
            catalog.add_product("cap", "Cap", "9.99", stock=-1)
        with pytest.raises(ValueError):
            catalog.set_stock("tee", -1)

    def test_price_change_replaces_snapshot(self, catalog):
        before = catalog.get_product("tee")
        catalog.set_price("tee", "18.50")

        assert catalog.get_product("tee").price == Decimal("18.50")
        assert before.price == Decimal("20.00")


class TestDecrement:
    def test_decrement(self, catalog):
        assert catalog.decrement_stock("tee", 3) is True
        assert catalog.get_product("tee").stock == 7

    def test_insufficient_stock_leaves_count_alone(self, catalog):
        assert catalog.decrement_stock("tee", 11) is False
        assert catalog.get_product("tee").stock == 10

    def test_unknown_product(self, catalog):
        assert catalog.decrement_stock("ghost", 1) is False

    def test_non_positive_quantity(self, catalog):
        with pytest.raises(ValueError):
            catalog.decrement_stock("tee", 0)

    def test_restore(self, catalog):
        catalog.decrement_stock("tee", 3)
        catalog.restore_stock("tee", 3)
        assert catalog.get_product("tee").stock == 10

    def test_restore_unknown_product_is_ignored(self, catalog):
        catalog.restore_stock("ghost", 1)
        assert catalog.get_product("ghost") is None

    def test_only_one_thread_wins_the_last_unit(self, catalog):
        barrier = threading.Barrier(8)
        results = []

        def buy():
            barrier.wait()
            results.append(catalog.decrement_stock("poster", 1))

        threads = [threading.Thread(target=buy) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert catalog.get_product("poster").stock == 0
