"""Shopping Cart aggregate: the shopper's cart lines and saved-for-later list.

A line is identified by its product plus the exact option selection, so the
same product in two sizes occupies two lines while re-adding an identical
selection only grows the existing line. A line lives in exactly one of the
two lists at a time.
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartItemSavedForLater,
    CartQuantityUpdated,
    SavedItemMovedToCart,
    SavedItemRemoved,
    SavedListCleared,
)
from ordering.domain import ordering


def canonical_options(selected_options) -> str:
    """Serialise an option map so equal maps always produce equal strings."""
    return json.dumps(
        {str(k): str(v) for k, v in (selected_options or {}).items()},
        sort_keys=True,
        separators=(",", ":"),
    )


def cart_item_id_for(product_id, selected_options=None) -> str:
    return f"{product_id}-{canonical_options(selected_options)}"


@dataclass(frozen=True)
class LineSnapshot:
    """Read-only copy of a cart or saved line, handed out by CartStore."""

    cart_item_id: str
    product_id: str
    quantity: int
    selected_options: dict = field(default_factory=dict)
    unit_price_snapshot: float | None = None

    @classmethod
    def of(cls, line):
        return cls(
            cart_item_id=line.cart_item_id,
            product_id=str(line.product_id),
            quantity=line.quantity,
            selected_options=line.options,
            unit_price_snapshot=line.unit_price_snapshot,
        )


@ordering.entity(part_of="ShoppingCart")
class CartLine:
    cart_item_id = String(required=True, max_length=1024)
    product_id = Identifier(required=True)
    selected_options = Text(default="{}")  # canonical JSON
    quantity = Integer(required=True, min_value=1)
    unit_price_snapshot = Float()
    added_at = DateTime()

    @property
    def options(self) -> dict:
        return json.loads(self.selected_options) if self.selected_options else {}


@ordering.entity(part_of="ShoppingCart")
class SavedLine:
    cart_item_id = String(required=True, max_length=1024)
    product_id = Identifier(required=True)
    selected_options = Text(default="{}")
    quantity = Integer(required=True, min_value=1)
    unit_price_snapshot = Float()
    added_at = DateTime()

    @property
    def options(self) -> dict:
        return json.loads(self.selected_options) if self.selected_options else {}


@ordering.aggregate
class ShoppingCart:
    shopper_id = String(max_length=255)
    items = HasMany(CartLine)
    saved_items = HasMany(SavedLine)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def line_cannot_be_in_cart_and_saved(self):
        in_cart = {line.cart_item_id for line in self.items}
        overlap = in_cart.intersection(line.cart_item_id for line in self.saved_items)
        if overlap:
            raise ValidationError({"saved_items": [f"Line {cid} is both in the cart and saved" for cid in overlap]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, shopper_id=None):
        now = datetime.now(UTC)
        return cls(shopper_id=shopper_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def cart_line(self, cart_item_id):
        return next((line for line in self.items if line.cart_item_id == cart_item_id), None)

    def saved_line(self, cart_item_id):
        return next((line for line in self.saved_items if line.cart_item_id == cart_item_id), None)

    def quantity_of(self, product_id) -> int:
        """Total quantity of ``product_id`` across every cart line, whatever the options."""
        return sum(line.quantity for line in self.items if str(line.product_id) == str(product_id))

    # -------------------------------------------------------------------
    # Cart lines
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, selected_options=None, unit_price_snapshot=None):
        """Add ``quantity`` of a product, growing an equivalent line if one exists.

        An equivalent saved line is pulled back into the cart and its
        quantity folded into the added one.

        Returns the cart_item_id of the affected line.
        """
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        cart_item_id = cart_item_id_for(product_id, selected_options)
        existing = self.cart_line(cart_item_id)
        saved = self.saved_line(cart_item_id)
        now = datetime.now(UTC)

        with atomic_change(self):
            line_quantity = quantity
            if saved:
                self.remove_saved_items(saved)
                line_quantity += saved.quantity

            if existing:
                existing.quantity += line_quantity
                line_quantity = existing.quantity
            else:
                self.add_items(
                    CartLine(
                        cart_item_id=cart_item_id,
                        product_id=str(product_id),
                        selected_options=canonical_options(selected_options),
                        quantity=line_quantity,
                        unit_price_snapshot=unit_price_snapshot,
                        added_at=now,
                    )
                )

            self.updated_at = now

        if saved:
            self.raise_(SavedItemMovedToCart(cart_id=str(self.id), cart_item_id=cart_item_id, quantity=saved.quantity))
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                cart_item_id=cart_item_id,
                product_id=str(product_id),
                quantity=quantity,
                line_quantity=line_quantity,
            )
        )
        return cart_item_id

    def update_quantity(self, cart_item_id, new_quantity):
        """Set a line's quantity. Zero or less removes the line; an unknown id is ignored."""
        line = self.cart_line(cart_item_id)
        if line is None:
            return

        if new_quantity <= 0:
            self.remove_item(cart_item_id)
            return

        previous_quantity = line.quantity
        if previous_quantity == new_quantity:
            return

        line.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                cart_item_id=cart_item_id,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, cart_item_id):
        line = self.cart_line(cart_item_id)
        if line is None:
            return

        self.remove_items(line)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), cart_item_id=cart_item_id))

    def clear(self):
        """Empty the cart. Saved lines stay where they are."""
        lines = list(self.items)
        for line in lines:
            self.remove_items(line)

        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), lines_removed=len(lines)))

    # -------------------------------------------------------------------
    # Saved for later
    # -------------------------------------------------------------------
    def save_for_later(self, cart_item_id):
        line = self.cart_line(cart_item_id)
        if line is None:
            return

        with atomic_change(self):
            self.remove_items(line)
            saved = self.saved_line(cart_item_id)
            if saved:
                saved.quantity += line.quantity
            else:
                self.add_saved_items(
                    SavedLine(
                        cart_item_id=line.cart_item_id,
                        product_id=line.product_id,
                        selected_options=line.selected_options,
                        quantity=line.quantity,
                        unit_price_snapshot=line.unit_price_snapshot,
                        added_at=line.added_at,
                    )
                )
            self.updated_at = datetime.now(UTC)

        self.raise_(CartItemSavedForLater(cart_id=str(self.id), cart_item_id=cart_item_id, quantity=line.quantity))

    def move_to_cart(self, cart_item_id):
        saved = self.saved_line(cart_item_id)
        if saved is None:
            return

        with atomic_change(self):
            self.remove_saved_items(saved)
            line = self.cart_line(cart_item_id)
            if line:
                line.quantity += saved.quantity
            else:
                self.add_items(
                    CartLine(
                        cart_item_id=saved.cart_item_id,
                        product_id=saved.product_id,
                        selected_options=saved.selected_options,
                        quantity=saved.quantity,
                        unit_price_snapshot=saved.unit_price_snapshot,
                        added_at=datetime.now(UTC),
                    )
                )
            self.updated_at = datetime.now(UTC)

        self.raise_(SavedItemMovedToCart(cart_id=str(self.id), cart_item_id=cart_item_id, quantity=saved.quantity))

    def remove_saved(self, cart_item_id):
        saved = self.saved_line(cart_item_id)
        if saved is None:
            return

        self.remove_saved_items(saved)
        self.updated_at = datetime.now(UTC)
        self.raise_(SavedItemRemoved(cart_id=str(self.id), cart_item_id=cart_item_id))

    def clear_saved(self):
        saved_lines = list(self.saved_items)
        for saved in saved_lines:
            self.remove_saved_items(saved)

        self.updated_at = datetime.now(UTC)
        self.raise_(SavedListCleared(cart_id=str(self.id), lines_removed=len(saved_lines)))

    # -------------------------------------------------------------------
    # Hydration
    # -------------------------------------------------------------------
    def replace(self, cart_lines, saved_lines):
        """Swap both lists for previously persisted ones. Raises no events.

        Duplicate ids within a list are merged; a line present in both lists
        stays in the cart.
        """
        with atomic_change(self):
            for line in list(self.items):
                self.remove_items(line)
            for saved in list(self.saved_items):
                self.remove_saved_items(saved)

            for snapshot in cart_lines:
                existing = self.cart_line(_id_of(snapshot))
                if existing:
                    existing.quantity += snapshot.quantity
                    continue
                self.add_items(CartLine(**_entity_kwargs(snapshot)))

            for snapshot in saved_lines:
                if self.cart_line(_id_of(snapshot)):
                    continue
                existing = self.saved_line(_id_of(snapshot))
                if existing:
                    existing.quantity += snapshot.quantity
                    continue
                self.add_saved_items(SavedLine(**_entity_kwargs(snapshot)))

            self.updated_at = datetime.now(UTC)


def _id_of(snapshot: LineSnapshot) -> str:
    return cart_item_id_for(snapshot.product_id, snapshot.selected_options)


def _entity_kwargs(snapshot: LineSnapshot) -> dict:
    return {
        "cart_item_id": _id_of(snapshot),
        "product_id": snapshot.product_id,
        "selected_options": canonical_options(snapshot.selected_options),
        "quantity": snapshot.quantity,
        "unit_price_snapshot": snapshot.unit_price_snapshot,
        "added_at": datetime.now(UTC),
    }
