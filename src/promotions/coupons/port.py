"""Promotions port (abstract interface).

Resolves a coupon code typed by the shopper into discount terms. The engine
treats the result as read-only and trusts only what the lookup returns, never
a code list baked into the client.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class Coupon:
    """Discount terms attached to a coupon code.

    ``discount_value`` is in percent points for PERCENTAGE coupons and in
    currency units for FIXED coupons.
    """

    code: str
    discount_type: DiscountType
    discount_value: Decimal

    def __post_init__(self) -> None:
        if self.discount_value < 0:
            raise ValueError("Discount value cannot be negative")
        if self.discount_type is DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")


class CouponLookup(ABC):
    """Abstract coupon lookup."""

    @abstractmethod
    def resolve(self, code: str) -> Coupon | None:
        """Return the coupon for ``code``, or None if no such coupon exists."""
        ...
