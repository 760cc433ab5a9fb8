"""Fixed coupon table for development and demos.

Stands in for a real promotions service. Codes are matched
case-insensitively after trimming whitespace.
"""

from decimal import Decimal

from promotions.coupons.port import Coupon, CouponLookup, DiscountType

DEMO_COUPONS = (
    Coupon(code="SAVE10", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10")),
    Coupon(code="FLAT15", discount_type=DiscountType.FIXED, discount_value=Decimal("15")),
)


class StaticCouponLookup(CouponLookup):
    """Coupon lookup over an in-memory table."""

    def __init__(self, coupons=DEMO_COUPONS) -> None:
        self._coupons = {coupon.code.upper(): coupon for coupon in coupons}

    def resolve(self, code: str) -> Coupon | None:
        if not code:
            return None
        return self._coupons.get(code.strip().upper())
