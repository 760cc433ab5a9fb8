"""In-memory catalog for development and testing.

Stock reads and decrements are serialised with a lock, so a decrement is a
compare-and-swap: two shoppers racing for the last unit cannot both win.
"""

import threading
from dataclasses import replace
from decimal import Decimal

import structlog

from inventory.catalog.port import CatalogPort, ProductSnapshot

logger = structlog.get_logger(__name__)


class InMemoryCatalog(CatalogPort):
    """Thread-safe dictionary-backed catalog."""

    def __init__(self, products=None) -> None:
        self._lock = threading.Lock()
        self._products: dict[str, ProductSnapshot] = {}
        for product in products or []:
            self._products[product.product_id] = product

    def add_product(
        self,
        product_id: str,
        title: str,
        price,
        stock: int,
        thumbnail: str | None = None,
        default_options: dict[str, str] | None = None,
    ) -> ProductSnapshot:
        if stock < 0:
            raise ValueError("Stock cannot be negative")
        product = ProductSnapshot(
            product_id=str(product_id),
            title=title,
            price=Decimal(str(price)),
            stock=stock,
            thumbnail=thumbnail,
            default_options=dict(default_options or {}),
        )
        with self._lock:
            self._products[product.product_id] = product
        return product

    def get_product(self, product_id: str) -> ProductSnapshot | None:
        with self._lock:
            return self._products.get(str(product_id))

    def set_price(self, product_id: str, price) -> None:
        with self._lock:
            product = self._products[str(product_id)]
            self._products[product.product_id] = replace(product, price=Decimal(str(price)))

    def set_stock(self, product_id: str, stock: int) -> None:
        if stock < 0:
            raise ValueError("Stock cannot be negative")
        with self._lock:
            product = self._products[str(product_id)]
            self._products[product.product_id] = replace(product, stock=stock)

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        with self._lock:
            product = self._products.get(str(product_id))
            if product is None or product.stock < quantity:
                return False
            self._products[product.product_id] = replace(product, stock=product.stock - quantity)
            remaining = product.stock - quantity

        logger.debug("Stock decremented", product_id=str(product_id), quantity=quantity, remaining=remaining)
        return True

    def restore_stock(self, product_id: str, quantity: int) -> None:
        with self._lock:
            product = self._products.get(str(product_id))
            if product is None:
                logger.warning("Cannot restore stock for unknown product", product_id=str(product_id))
                return
            self._products[product.product_id] = replace(product, stock=product.stock + quantity)
