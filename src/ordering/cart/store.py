"""CartStore: the single mutation surface for a shopper's cart.

Owns one ShoppingCart, writes both lists through to client storage after every
change and then tells subscribers what happened. Readers get frozen
LineSnapshots, never the live entities.
"""

from collections.abc import Callable

import structlog

from ordering.cart.cart import LineSnapshot, ShoppingCart
from ordering.cart.storage import (
    CART_KEY,
    SAVED_KEY,
    CartStorage,
    MemoryCartStorage,
    load_lines,
    save_lines,
    storage_key,
)

logger = structlog.get_logger(__name__)

Listener = Callable[["CartStore", list], None]


class CartStore:
    def __init__(self, storage: CartStorage | None = None, shopper_id=None):
        self.shopper_id = shopper_id
        self.storage = storage if storage is not None else MemoryCartStorage()
        self.cart = ShoppingCart.create(shopper_id=shopper_id)
        self._listeners: list[Listener] = []
        self.hydrate()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[LineSnapshot]:
        return [LineSnapshot.of(line) for line in self.cart.items]

    @property
    def saved_lines(self) -> list[LineSnapshot]:
        return [LineSnapshot.of(line) for line in self.cart.saved_items]

    @property
    def is_empty(self) -> bool:
        return not self.cart.items

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.cart.items)

    def line(self, cart_item_id) -> LineSnapshot | None:
        found = self.cart.cart_line(cart_item_id)
        return LineSnapshot.of(found) if found else None

    def saved_line(self, cart_item_id) -> LineSnapshot | None:
        found = self.cart.saved_line(cart_item_id)
        return LineSnapshot.of(found) if found else None

    def quantity_of(self, product_id) -> int:
        return self.cart.quantity_of(product_id)

    # -------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(store, events)`` after every change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_to_cart(self, product_id, quantity, selected_options=None, unit_price_snapshot=None) -> str:
        cart_item_id = self.cart.add_item(
            product_id,
            quantity,
            selected_options=selected_options,
            unit_price_snapshot=unit_price_snapshot,
        )
        self._changed()
        return cart_item_id

    def update_quantity(self, cart_item_id, new_quantity):
        self.cart.update_quantity(cart_item_id, new_quantity)
        self._changed()

    def remove_item(self, cart_item_id):
        self.cart.remove_item(cart_item_id)
        self._changed()

    def remove_saved(self, cart_item_id):
        self.cart.remove_saved(cart_item_id)
        self._changed()

    def save_for_later(self, cart_item_id):
        self.cart.save_for_later(cart_item_id)
        self._changed()

    def move_to_cart(self, cart_item_id):
        self.cart.move_to_cart(cart_item_id)
        self._changed()

    def clear(self):
        self.cart.clear()
        self._changed()

    def clear_saved(self):
        self.cart.clear_saved()
        self._changed()

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def hydrate(self):
        """Replace in-memory state with whatever the storage currently holds."""
        cart_lines = load_lines(self.storage, storage_key(self.shopper_id, CART_KEY))
        saved_lines = load_lines(self.storage, storage_key(self.shopper_id, SAVED_KEY))
        self.cart.replace(cart_lines, saved_lines)
        self.cart._events.clear()
        logger.debug(
            "Cart hydrated",
            shopper_id=self.shopper_id,
            lines=len(cart_lines),
            saved=len(saved_lines),
        )

    def _persist(self):
        save_lines(self.storage, storage_key(self.shopper_id, CART_KEY), self.lines)
        save_lines(self.storage, storage_key(self.shopper_id, SAVED_KEY), self.saved_lines)

    def _changed(self):
        events = list(self.cart._events)
        self.cart._events.clear()
        if not events:
            return

        self._persist()
        for listener in list(self._listeners):
            listener(self, events)
