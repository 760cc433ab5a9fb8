"""Order placement: commits a cart as an order in one stock-decrementing transaction.

Steps, in order:

1. Refuse an empty cart.
2. Re-validate every product's stock against the catalog's current figures.
3. Decrement stock product by product with a compare-and-swap; a lost race
   restores every decrement already applied.
4. Price the cart at commit time and persist the Order with per-line
   price_at_purchase snapshots. A total that no longer matches the payment,
   or a persistence failure, restores the stock.
5. Clear the cart, or only the committed lines when they were pinned.

Either every step succeeds or nothing observable changes: no order, no stock
movement, cart intact.
"""

from collections import Counter

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from inventory.stock.validator import StockShortfall, find_shortfalls
from ordering.cart.cart import canonical_options
from ordering.exceptions import PaymentIntentError, StockConflictError
from ordering.order.order import Order
from ordering.pricing.calculator import ShippingMethod, price, resolve_lines
from ordering.pricing.config import DEFAULT_PRICING, PricingConfig

logger = structlog.get_logger(__name__)


class OrderPlacement:
    def __init__(self, catalog, config: PricingConfig | None = None):
        self.catalog = catalog
        self.config = config or DEFAULT_PRICING

    def place(
        self,
        store,
        *,
        shipping_address,
        lines=None,
        expected_total=None,
        billing_address=None,
        coupon=None,
        shipping_method=ShippingMethod.STANDARD,
        payment_method=None,
        payment_intent_id=None,
        customer_id=None,
    ) -> str:
        """Commit the lines in ``store`` as an order and return the new order id.

        ``lines`` pins the exact lines to commit (defaults to the store's current
        lines). With ``expected_total`` set, an order whose commit-time total
        differs is refused before anything is persisted.
        """
        cart_lines = store.lines if lines is None else list(lines)
        if not cart_lines:
            raise ValidationError({"cart": ["Cannot place an order for an empty cart"]})

        quantities = Counter()
        for line in cart_lines:
            quantities[line.product_id] += line.quantity

        shortfalls = find_shortfalls(self.catalog, quantities)
        if shortfalls:
            logger.info(
                "Order placement rejected, insufficient stock",
                products=[s.product_id for s in shortfalls],
            )
            raise StockConflictError(shortfalls)

        decremented = self._decrement_all(quantities)
        try:
            order = self._build_order(
                cart_lines,
                shipping_address=shipping_address,
                billing_address=billing_address,
                coupon=coupon,
                shipping_method=shipping_method,
                payment_method=payment_method,
                payment_intent_id=payment_intent_id,
                customer_id=customer_id,
            )
            if expected_total is not None and order.pricing.total != expected_total:
                raise PaymentIntentError(
                    f"The order total {order.pricing.total:.2f} no longer matches the payment of {expected_total:.2f}"
                )
            current_domain.repository_for(Order).add(order)
        except Exception:
            logger.exception("Order placement failed, restoring stock")
            self._restore(decremented)
            raise

        if store.lines == cart_lines:
            store.clear()
        else:
            for line in cart_lines:
                store.remove_item(line.cart_item_id)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            customer_id=customer_id,
            total=order.pricing.total,
            item_count=sum(quantities.values()),
        )
        return str(order.id)

    def _decrement_all(self, quantities) -> list[tuple[str, int]]:
        applied = []
        for product_id, quantity in quantities.items():
            if self.catalog.decrement_stock(product_id, quantity):
                applied.append((product_id, quantity))
                continue

            self._restore(applied)
            product = self.catalog.get_product(product_id)
            available = product.stock if product else 0
            logger.info("Stock decrement lost a race", product_id=product_id, requested=quantity)
            raise StockConflictError([StockShortfall(product_id=product_id, requested=quantity, available=available)])
        return applied

    def _restore(self, applied):
        for product_id, quantity in reversed(applied):
            self.catalog.restore_stock(product_id, quantity)

    def _build_order(self, cart_lines, *, coupon, shipping_method, **details) -> Order:
        priced = resolve_lines(cart_lines, self.catalog)
        breakdown = price(priced, coupon=coupon, shipping_method=shipping_method, config=self.config)

        order_lines = []
        for line, priced_line in zip(cart_lines, priced, strict=True):
            product = self.catalog.get_product(line.product_id)
            order_lines.append(
                {
                    "product_id": line.product_id,
                    "title": product.title if product else line.product_id,
                    "thumbnail": product.thumbnail if product else None,
                    "quantity": line.quantity,
                    "price_at_purchase": float(priced_line.unit_price),
                    "selected_options": canonical_options(line.selected_options),
                }
            )

        return Order.place(
            lines=order_lines,
            pricing=breakdown,
            shipping_method=ShippingMethod(shipping_method).value,
            coupon_code=coupon.code if coupon else None,
            **details,
        )
