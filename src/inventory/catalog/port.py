"""Catalog port (abstract interface).

The catalog is the system of record for a product's current price and its
authoritative stock count. The ordering engine only reads from it, except for
the conditional stock decrement performed when an order is committed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class ProductSnapshot:
    """Point-in-time view of a catalog product."""

    product_id: str
    title: str
    price: Decimal
    stock: int
    thumbnail: str | None = None
    default_options: dict[str, str] = field(default_factory=dict)


class CatalogPort(ABC):
    """Abstract catalog interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductSnapshot | None:
        """Return the product's current price and stock, or None if it is not listed."""
        ...

    @abstractmethod
    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Atomically reduce stock by ``quantity`` if at least that much is available.

        Returns False, leaving stock untouched, when the product is unknown or
        the available stock is insufficient.
        """
        ...

    @abstractmethod
    def restore_stock(self, product_id: str, quantity: int) -> None:
        """Return ``quantity`` units to stock (compensates a decrement)."""
        ...
