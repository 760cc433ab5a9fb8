"""Live pricing for a cart: recomputes the breakdown whenever an input changes."""

import structlog
from protean.exceptions import ValidationError

from ordering.pricing.calculator import PricedBreakdown, ShippingMethod, price, resolve_lines
from ordering.pricing.config import DEFAULT_PRICING, PricingConfig

logger = structlog.get_logger(__name__)


class CartPricing:
    """Holds the coupon and shipping method for one cart and keeps ``breakdown`` current.

    ``breakdown`` is replaced in a single assignment on every recompute, so a
    reader never sees figures from two different input sets.
    """

    def __init__(self, store, catalog, coupons=None, config: PricingConfig | None = None):
        self.store = store
        self.catalog = catalog
        self.coupons = coupons
        self.config = config or DEFAULT_PRICING
        self.coupon = None
        self.shipping_method = ShippingMethod.STANDARD
        self.breakdown: PricedBreakdown = price([], config=self.config)
        self._unsubscribe = store.subscribe(self._on_cart_changed)
        self.refresh()

    @property
    def coupon_code(self) -> str | None:
        return self.coupon.code if self.coupon else None

    def _on_cart_changed(self, store, events):
        self.refresh()

    def refresh(self) -> PricedBreakdown:
        lines = resolve_lines(self.store.lines, self.catalog, strict=False)
        self.breakdown = price(lines, coupon=self.coupon, shipping_method=self.shipping_method, config=self.config)
        return self.breakdown

    def apply_coupon(self, code: str) -> PricedBreakdown:
        """Apply ``code``. An unknown code clears any applied coupon before failing."""
        coupon = self.coupons.resolve(code) if self.coupons and code else None
        if coupon is None:
            self.coupon = None
            self.refresh()
            logger.info("Coupon rejected", code=code)
            raise ValidationError({"coupon_code": [f"Coupon {code!r} is not valid"]})

        self.coupon = coupon
        logger.info("Coupon applied", code=coupon.code)
        return self.refresh()

    def remove_coupon(self) -> PricedBreakdown:
        self.coupon = None
        return self.refresh()

    def set_shipping_method(self, method) -> PricedBreakdown:
        try:
            self.shipping_method = ShippingMethod(method)
        except ValueError:
            raise ValidationError({"shipping_method": [f"Unknown shipping method {method!r}"]}) from None
        return self.refresh()

    def detach(self):
        self._unsubscribe()
