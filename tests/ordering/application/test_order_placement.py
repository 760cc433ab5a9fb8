"""Tests for the order placement transaction."""

import threading

import pytest
from ordering.cart.store import CartStore
from ordering.domain import ordering
from ordering.exceptions import PaymentIntentError, StockConflictError
from ordering.order.order import Order, OrderStatus
from ordering.pricing.calculator import ShippingMethod
from ordering.shared.address import Address
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from promotions.coupons.static_lookup import StaticCouponLookup

ADDRESS = Address(name="Ada Lovelace", street="1 Main St", city="Springfield", postal_code="62701", country="USA")


def _place(placement, store, **kwargs):
    kwargs.setdefault("shipping_address", ADDRESS)
    return placement.place(store, **kwargs)


class TestPlace:
    def test_places_order_and_decrements_stock(self, placement, store, catalog):
        store.add_to_cart("tee", 2, {"size": "M"})
        store.add_to_cart("mug", 1)

        order_id = _place(placement, store, customer_id="cust-001", payment_intent_id="pi_1")

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.customer_id == "cust-001"
        assert order.payment_intent_id == "pi_1"
        assert {item.product_id: item.quantity for item in order.items} == {"tee": 2, "mug": 1}
        assert catalog.get_product("tee").stock == 8
        assert catalog.get_product("mug").stock == 2

    def test_clears_the_cart_but_not_saved(self, placement, store):
        saved_id = store.add_to_cart("poster", 1)
        store.save_for_later(saved_id)
        store.add_to_cart("tee", 1)

        _place(placement, store)

        assert store.is_empty
        assert [line.product_id for line in store.saved_lines] == ["poster"]

    def test_prices_at_commit_time(self, placement, store, catalog):
        store.add_to_cart("tee", 2, unit_price_snapshot=20.0)
        catalog.set_price("tee", "25.00")

        order_id = _place(placement, store)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.items[0].price_at_purchase == 25.0
        assert order.pricing.subtotal == 50.0
        assert order.pricing.shipping_cost == 0.0

    def test_coupon_and_shipping_method_are_recorded(self, placement, store):
        store.add_to_cart("tee", 2)

        order_id = _place(
            placement,
            store,
            coupon=StaticCouponLookup().resolve("SAVE10"),
            shipping_method=ShippingMethod.EXPRESS,
        )

        order = current_domain.repository_for(Order).get(order_id)
        assert order.coupon_code == "SAVE10"
        assert order.shipping_method == "express"
        assert order.pricing.discount == 4.0
        assert order.pricing.shipping_cost == 15.0

    def test_order_keeps_prices_after_catalog_changes(self, placement, store, catalog):
        store.add_to_cart("tee", 1)
        order_id = _place(placement, store)

        catalog.set_price("tee", "99.00")

        order = current_domain.repository_for(Order).get(order_id)
        assert order.items[0].price_at_purchase == 20.0
        assert order.pricing.subtotal == 20.0


class TestAbort:
    def test_empty_cart_rejected(self, placement, store):
        with pytest.raises(ValidationError) as exc:
            _place(placement, store)
        assert "cart" in exc.value.messages

    def test_shortfall_changes_nothing(self, placement, store, catalog):
        store.add_to_cart("tee", 2)
        store.add_to_cart("mug", 2)
        catalog.set_stock("mug", 1)

        with pytest.raises(StockConflictError) as exc:
            _place(placement, store)

        assert [(s.product_id, s.requested, s.available) for s in exc.value.shortfalls] == [("mug", 2, 1)]
        assert catalog.get_product("tee").stock == 10
        assert catalog.get_product("mug").stock == 1
        assert store.quantity_of("tee") == 2
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_quantities_summed_across_option_lines(self, placement, store):
        store.add_to_cart("poster", 1, {"finish": "matte"})
        store.add_to_cart("poster", 1, {"finish": "gloss"})

        with pytest.raises(StockConflictError) as exc:
            _place(placement, store)

        assert exc.value.shortfalls[0].requested == 2

    def test_lost_race_restores_earlier_decrements(self, placement, store, catalog, monkeypatch):
        store.add_to_cart("tee", 2)
        store.add_to_cart("mug", 1)
        original = catalog.decrement_stock

        def decrement(product_id, quantity):
            if product_id == "mug":
                return False
            return original(product_id, quantity)

        monkeypatch.setattr(catalog, "decrement_stock", decrement)

        with pytest.raises(StockConflictError):
            _place(placement, store)

        assert catalog.get_product("tee").stock == 10
        assert not store.is_empty

    def test_failure_after_decrement_restores_stock(self, placement, store, catalog, monkeypatch):
        store.add_to_cart("tee", 2)

        def fail(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(placement, "_build_order", fail)

        with pytest.raises(RuntimeError):
            _place(placement, store)

        assert catalog.get_product("tee").stock == 10
        assert store.quantity_of("tee") == 2

    def test_total_that_differs_from_payment_changes_nothing(self, placement, store, catalog):
        store.add_to_cart("tee", 2)

        with pytest.raises(PaymentIntentError):
            _place(placement, store, expected_total=27.68)

        assert catalog.get_product("tee").stock == 10
        assert store.quantity_of("tee") == 2
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_commits_pinned_lines_only(self, placement, store, catalog):
        store.add_to_cart("tee", 2)
        pinned = store.lines
        store.add_to_cart("mug", 1)

        order_id = _place(placement, store, lines=pinned, expected_total=48.2)

        order = current_domain.repository_for(Order).get(order_id)
        assert [item.product_id for item in order.items] == ["tee"]
        assert catalog.get_product("mug").stock == 3
        assert [line.product_id for line in store.lines] == ["mug"]


class TestNoOversell:
    def test_two_shoppers_race_for_last_unit(self, placement, storage, catalog, monkeypatch):
        stores = [CartStore(storage=storage, shopper_id=name) for name in ("first", "second")]
        for store in stores:
            store.add_to_cart("poster", 1)

        # Both attempts pass the stock re-check before either decrements
        barrier = threading.Barrier(len(stores), timeout=5)
        original = catalog.decrement_stock

        def decrement(product_id, quantity):
            barrier.wait()
            return original(product_id, quantity)

        monkeypatch.setattr(catalog, "decrement_stock", decrement)
        results = []

        def attempt(store):
            with ordering.domain_context():
                try:
                    results.append(_place(placement, store))
                except StockConflictError:
                    results.append(None)

        threads = [threading.Thread(target=attempt, args=(store,)) for store in stores]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 2
        assert len([r for r in results if r is not None]) == 1
        assert catalog.get_product("poster").stock == 0
        assert sorted(store.is_empty for store in stores) == [False, True]
        assert len(current_domain.repository_for(Order)._dao.query.all().items) == 1
