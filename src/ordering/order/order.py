"""Order aggregate: an immutable record of what was bought, at what price.

Lines and pricing are captured at placement and never recomputed. Only the
fulfilment status moves afterwards:

    PENDING → PROCESSING → SHIPPED → DELIVERED
    PENDING | PROCESSING → CANCELLED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderShipped,
)
from ordering.pricing.calculator import PricedBreakdown
from ordering.shared.address import Address


class OrderStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


@ordering.entity(part_of="Order")
class OrderLine:
    """One purchased product with the unit price charged for it."""

    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    thumbnail = String(max_length=1024)
    quantity = Integer(required=True, min_value=1)
    price_at_purchase = Float(required=True, min_value=0.0)
    selected_options = Text(default="{}")  # canonical JSON

    @property
    def options(self) -> dict:
        return json.loads(self.selected_options) if self.selected_options else {}

    @property
    def line_total(self) -> float:
        return round(self.price_at_purchase * self.quantity, 2)


@ordering.aggregate
class Order:
    customer_id = String(max_length=255)  # None for guest checkouts
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderLine)
    pricing = ValueObject(PricedBreakdown)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    shipping_method = String(max_length=20)
    coupon_code = String(max_length=100)
    payment_method = String(max_length=100)
    payment_intent_id = String(max_length=255)
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        lines,
        pricing,
        shipping_address,
        billing_address=None,
        customer_id=None,
        shipping_method=None,
        coupon_code=None,
        payment_method=None,
        payment_intent_id=None,
    ):
        """Create a pending order.

        Args:
            lines: Dicts with product_id, title, thumbnail, quantity,
                   price_at_purchase and optionally selected_options.
            pricing: The PricedBreakdown the shopper is charged.
            shipping_address: Address the order ships to. Also used for
                              billing when no billing address is given.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one line"]})

        now = datetime.now(UTC)
        order = cls(
            customer_id=str(customer_id) if customer_id else None,
            status=OrderStatus.PENDING.value,
            items=[OrderLine(**line) for line in lines],
            pricing=pricing,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            shipping_method=shipping_method,
            coupon_code=coupon_code,
            payment_method=payment_method,
            payment_intent_id=payment_intent_id,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=order.customer_id,
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "quantity": item.quantity,
                            "price_at_purchase": item.price_at_purchase,
                        }
                        for item in order.items
                    ]
                ),
                item_count=sum(item.quantity for item in order.items),
                subtotal=pricing.subtotal,
                discount=pricing.discount,
                shipping_cost=pricing.shipping_cost,
                tax=pricing.tax,
                total=pricing.total,
                currency=pricing.currency,
                coupon_code=coupon_code,
                payment_intent_id=payment_intent_id,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _move_to(self, target_status, now):
        self._assert_can_transition(target_status)
        self.status = target_status.value
        self.updated_at = now

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def mark_processing(self):
        now = datetime.now(UTC)
        self._move_to(OrderStatus.PROCESSING, now)
        self.raise_(OrderProcessing(order_id=str(self.id), started_at=now))

    def ship(self, carrier=None, tracking_number=None):
        now = datetime.now(UTC)
        self._move_to(OrderStatus.SHIPPED, now)
        self.carrier = carrier
        self.tracking_number = tracking_number
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                carrier=carrier,
                tracking_number=tracking_number,
                shipped_at=now,
            )
        )

    def deliver(self):
        now = datetime.now(UTC)
        self._move_to(OrderStatus.DELIVERED, now)
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    def cancel(self, reason=None):
        now = datetime.now(UTC)
        self._move_to(OrderStatus.CANCELLED, now)
        self.cancellation_reason = reason
        self.raise_(OrderCancelled(order_id=str(self.id), reason=reason, cancelled_at=now))
