"""Pricing constants, overridable through the environment."""

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PricingConfig:
    free_shipping_threshold: Decimal = Decimal("50.00")
    standard_shipping_rate: Decimal = Decimal("5.00")
    express_shipping_rate: Decimal = Decimal("15.00")
    tax_rate: Decimal = Decimal("0.08")
    currency: str = "USD"

    @classmethod
    def from_env(cls) -> "PricingConfig":
        """Build a config from STOREFRONT_* variables, defaulting any that are unset."""
        defaults = cls()
        return cls(
            free_shipping_threshold=_decimal_env(
                "STOREFRONT_FREE_SHIPPING_THRESHOLD", defaults.free_shipping_threshold
            ),
            standard_shipping_rate=_decimal_env("STOREFRONT_STANDARD_SHIPPING_RATE", defaults.standard_shipping_rate),
            express_shipping_rate=_decimal_env("STOREFRONT_EXPRESS_SHIPPING_RATE", defaults.express_shipping_rate),
            tax_rate=_decimal_env("STOREFRONT_TAX_RATE", defaults.tax_rate),
            currency=os.getenv("STOREFRONT_CURRENCY", defaults.currency).upper(),
        )


def _decimal_env(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return Decimal(raw.strip())


DEFAULT_PRICING = PricingConfig()
