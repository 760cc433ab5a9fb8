"""Tests for cart line management on the ShoppingCart aggregate."""

import pytest
from ordering.cart.cart import ShoppingCart, canonical_options, cart_item_id_for
from ordering.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from protean.exceptions import ValidationError


def _make_cart():
    return ShoppingCart.create(shopper_id="shopper-001")


class TestLineIdentity:
    def test_id_combines_product_and_options(self):
        assert cart_item_id_for("tee", {"size": "M"}) == 'tee-{"size":"M"}'

    def test_option_order_does_not_matter(self):
        assert cart_item_id_for("tee", {"size": "M", "color": "Red"}) == cart_item_id_for(
            "tee", {"color": "Red", "size": "M"}
        )

    def test_no_options_is_empty_object(self):
        assert cart_item_id_for("mug") == "mug-{}"
        assert canonical_options(None) == "{}"


class TestAddItem:
    def test_add_item(self):
        cart = _make_cart()
        cart_item_id = cart.add_item("tee", 2, {"size": "M"}, unit_price_snapshot=20.0)

        assert len(cart.items) == 1
        line = cart.items[0]
        assert line.cart_item_id == cart_item_id
        assert line.quantity == 2
        assert line.options == {"size": "M"}
        assert line.unit_price_snapshot == 20.0

    def test_add_item_raises_event(self):
        cart = _make_cart()
        cart.add_item("tee", 1)

        added_events = [e for e in cart._events if isinstance(e, CartItemAdded)]
        assert len(added_events) == 1
        assert added_events[0].product_id == "tee"
        assert added_events[0].quantity == 1
        assert added_events[0].line_quantity == 1

    def test_same_product_and_options_merges_into_one_line(self):
        cart = _make_cart()
        cart.add_item("tee", 1, {"size": "M", "color": "Red"})
        cart.add_item("tee", 2, {"color": "Red", "size": "M"})

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    def test_different_options_create_separate_lines(self):
        cart = _make_cart()
        cart.add_item("tee", 1, {"size": "M"})
        cart.add_item("tee", 1, {"size": "L"})

        assert len(cart.items) == 2
        assert cart.quantity_of("tee") == 2

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_below_one_is_rejected(self, quantity):
        cart = _make_cart()
        cart.add_item("tee", 1)
        cart._events.clear()

        with pytest.raises(ValidationError) as exc:
            cart.add_item("tee", quantity)

        assert "quantity" in exc.value.messages
        assert cart.items[0].quantity == 1
        assert cart._events == []


class TestUpdateQuantity:
    def test_sets_quantity(self):
        cart = _make_cart()
        cart_item_id = cart.add_item("tee", 1)
        cart.update_quantity(cart_item_id, 4)

        assert cart.items[0].quantity == 4
        updated = [e for e in cart._events if isinstance(e, CartQuantityUpdated)]
        assert updated[0].previous_quantity == 1
        assert updated[0].new_quantity == 4

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_zero_or_less_removes_the_line(self, quantity):
        cart = _make_cart()
        cart_item_id = cart.add_item("tee", 2)
        cart.update_quantity(cart_item_id, quantity)

        assert len(cart.items) == 0
        assert any(isinstance(e, CartItemRemoved) for e in cart._events)

    def test_unknown_line_is_ignored(self):
        cart = _make_cart()
        cart.add_item("tee", 2)
        cart._events.clear()

        cart.update_quantity("nope-{}", 5)

        assert cart.items[0].quantity == 2
        assert cart._events == []


class TestRemoveAndClear:
    def test_remove_item(self):
        cart = _make_cart()
        cart_item_id = cart.add_item("tee", 1)
        cart.remove_item(cart_item_id)

        assert len(cart.items) == 0

    def test_remove_is_idempotent(self):
        cart = _make_cart()
        cart_item_id = cart.add_item("tee", 1)
        cart.remove_item(cart_item_id)
        cart._events.clear()

        cart.remove_item(cart_item_id)

        assert cart._events == []

    def test_clear_empties_cart_but_keeps_saved(self):
        cart = _make_cart()
        cart.add_item("tee", 1)
        saved_id = cart.add_item("mug", 1)
        cart.save_for_later(saved_id)
        cart.add_item("poster", 2)

        cart.clear()

        assert len(cart.items) == 0
        assert [line.cart_item_id for line in cart.saved_items] == [saved_id]
        cleared = [e for e in cart._events if isinstance(e, CartCleared)]
        assert cleared[0].lines_removed == 2
