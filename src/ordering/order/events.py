"""Domain events for the Order aggregate.

Raised as an order is placed and as fulfilment moves it through
Processing, Shipped and Delivered, or cancels it.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was committed as an order and its stock was decremented."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = String(max_length=255)
    items = Text(required=True)  # JSON: list of {product_id, quantity, price_at_purchase}
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    discount = Float()
    shipping_cost = Float()
    tax = Float()
    total = Float(required=True)
    currency = String(default="USD")
    coupon_code = String(max_length=100)
    payment_intent_id = String(max_length=255)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderProcessing:
    """Fulfilment started working on the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    started_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    """The order left the warehouse."""

    __version__ = 1

    order_id = Identifier(required=True)
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    """The carrier confirmed delivery."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before it shipped."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)
