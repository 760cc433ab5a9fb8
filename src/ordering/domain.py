"""Ordering bounded context: Shopping Cart, Pricing, Checkout and Orders.

Holds the shopper's cart and saved-for-later lists, prices them, drives the
multi-step checkout against the payment collaborator, and commits placed
orders as stock-decrementing transactions.
"""

import structlog
from protean.domain import Domain

from ordering.utils.logging import configure_logging

# Configure logging for the application
configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
