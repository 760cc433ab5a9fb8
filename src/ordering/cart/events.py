"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the cart, or an equivalent line grew."""

    __version__ = 1

    cart_id = Identifier(required=True)
    cart_item_id = String(required=True, max_length=1024)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart line was set."""

    __version__ = 1

    cart_id = Identifier(required=True)
    cart_item_id = String(required=True, max_length=1024)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    """A line left the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    cart_item_id = String(required=True, max_length=1024)


@ordering.event(part_of="ShoppingCart")
class CartItemSavedForLater:
    """A cart line was moved to the saved-for-later list."""

    __version__ = 1

    cart_id = Identifier(required=True)
    cart_item_id = String(required=True, max_length=1024)
    quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class SavedItemMovedToCart:
    """A saved line was moved back into the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    cart_item_id = String(required=True, max_length=1024)
    quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class SavedItemRemoved:
    """A line was dropped from the saved-for-later list."""

    __version__ = 1

    cart_id = Identifier(required=True)
    cart_item_id = String(required=True, max_length=1024)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """Every line left the cart. The saved list is untouched."""

    __version__ = 1

    cart_id = Identifier(required=True)
    lines_removed = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class SavedListCleared:
    """Every line left the saved-for-later list."""

    __version__ = 1

    cart_id = Identifier(required=True)
    lines_removed = Integer(required=True)
