"""Stock validation against the catalog's authoritative stock count.

Two checks live here on purpose as separate functions:

* ``StockValidator.validate`` is the advisory check run when a shopper adds to
  or grows a cart line. It keeps the common case from overselling and tells
  the shopper exactly how many more units they may add.
* ``find_shortfalls`` is the authoritative re-check run inside order
  placement, against stock as it is at commit time.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from inventory.catalog.port import CatalogPort


@dataclass(frozen=True)
class StockCheck:
    """Outcome of an advisory stock check."""

    ok: bool
    available_remaining: int
    requested_quantity: int
    in_stock: int


@dataclass(frozen=True)
class StockShortfall:
    """A product whose current stock cannot cover the requested quantity."""

    product_id: str
    requested: int
    available: int

    @property
    def missing(self) -> int:
        return self.requested - self.available


class StockValidator:
    """Advisory stock check used before a cart mutation commits."""

    def __init__(self, catalog: CatalogPort) -> None:
        self._catalog = catalog

    def validate(self, product_id: str, requested_quantity: int, quantity_already_in_cart: int = 0) -> StockCheck:
        product = self._catalog.get_product(product_id)
        in_stock = product.stock if product is not None else 0
        remaining = max(in_stock - quantity_already_in_cart, 0)

        return StockCheck(
            ok=product is not None and requested_quantity + quantity_already_in_cart <= in_stock,
            available_remaining=remaining,
            requested_quantity=requested_quantity,
            in_stock=in_stock,
        )


def find_shortfalls(catalog: CatalogPort, quantities: Mapping[str, int]) -> list[StockShortfall]:
    """Return every product in ``quantities`` whose current stock is insufficient."""
    shortfalls = []
    for product_id, requested in quantities.items():
        product = catalog.get_product(product_id)
        available = product.stock if product is not None else 0
        if requested > available:
            shortfalls.append(StockShortfall(product_id=str(product_id), requested=requested, available=available))
    return shortfalls
