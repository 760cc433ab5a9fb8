"""Pricing calculator: turns cart lines, a coupon and a shipping method into a priced breakdown.

All arithmetic happens in Decimal and every component is rounded to cents
(half-up) before the next one is derived from it, so the same inputs always
produce the same figures. The result is a value object: a change to any
input produces a new breakdown, never an edited one.

    subtotal    = Σ unit_price × quantity
    discount    = subtotal × pct / 100            (percentage coupon)
                = min(amount, subtotal)           (fixed coupon)
    discounted  = subtotal − discount
    shipping    = express rate                    (express)
                = 0 if discounted ≥ threshold     (standard)
                  else standard rate
    tax         = discounted × tax rate
    total       = discounted + shipping + tax
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.fields import Float, String

from ordering.domain import ordering
from ordering.pricing.config import DEFAULT_PRICING, PricingConfig
from promotions.coupons.port import Coupon, DiscountType

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"


@dataclass(frozen=True)
class PricedLine:
    """A cart line with the unit price it should be charged at."""

    product_id: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@ordering.value_object
class PricedBreakdown:
    """The chargeable figures for a cart: subtotal, discount, shipping, tax and total.

    Captured verbatim on an Order at placement, so the order keeps the figures
    the shopper was charged even if catalogue prices change later.
    """

    subtotal = Float(default=0.0)
    discount = Float(default=0.0)
    shipping_cost = Float(default=0.0)
    tax = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="USD")

    @property
    def discounted_subtotal(self) -> float:
        return float(_cents(Decimal(str(self.subtotal)) - Decimal(str(self.discount))))


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _discount_for(subtotal: Decimal, coupon: Coupon | None) -> Decimal:
    if coupon is None:
        return ZERO
    value = Decimal(str(coupon.discount_value))
    if coupon.discount_type is DiscountType.PERCENTAGE:
        return _cents(subtotal * value / Decimal("100"))
    # Fixed discounts never exceed the subtotal
    return _cents(min(value, subtotal))


def _shipping_for(discounted: Decimal, subtotal: Decimal, method: ShippingMethod, config: PricingConfig) -> Decimal:
    if subtotal <= ZERO:
        return ZERO
    if method is ShippingMethod.EXPRESS:
        return _cents(config.express_shipping_rate)
    if discounted >= config.free_shipping_threshold:
        return ZERO
    return _cents(config.standard_shipping_rate)


def price(
    lines: Iterable[PricedLine],
    coupon: Coupon | None = None,
    shipping_method: ShippingMethod | str = ShippingMethod.STANDARD,
    config: PricingConfig | None = None,
) -> PricedBreakdown:
    """Price ``lines``. Pure: reads nothing but its arguments."""
    config = config or DEFAULT_PRICING
    method = ShippingMethod(shipping_method)

    subtotal = _cents(sum((line.line_total for line in lines), ZERO))
    discount = _discount_for(subtotal, coupon)
    discounted = subtotal - discount
    shipping_cost = _shipping_for(discounted, subtotal, method, config)
    tax = _cents(discounted * config.tax_rate)
    total = discounted + shipping_cost + tax

    return PricedBreakdown(
        subtotal=float(subtotal),
        discount=float(discount),
        shipping_cost=float(shipping_cost),
        tax=float(tax),
        total=float(total),
        currency=config.currency,
    )


def resolve_lines(cart_lines, catalog, strict: bool = True) -> list[PricedLine]:
    """Attach the catalog's current unit price to each cart line.

    Lines whose product is no longer listed fall back to the price captured
    when they were added. A line with neither raises ValidationError, or is
    skipped when ``strict`` is False.
    """
    priced = []
    for line in cart_lines:
        product = catalog.get_product(line.product_id)
        if product is not None:
            unit_price = Decimal(str(product.price))
        elif line.unit_price_snapshot is not None:
            unit_price = Decimal(str(line.unit_price_snapshot))
        elif strict:
            raise ValidationError({"product_id": [f"Product {line.product_id} is no longer available"]})
        else:
            logger.warning("Skipping unpriceable cart line", product_id=line.product_id)
            continue
        priced.append(PricedLine(product_id=line.product_id, quantity=line.quantity, unit_price=unit_price))
    return priced
