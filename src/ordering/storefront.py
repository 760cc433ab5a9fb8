"""Storefront: wires the catalog, promotions and payment collaborators to per-shopper sessions.

Every shopper gets a ShopperSession holding their cart store, its live
pricing and, once they start one, their checkout flow. The storefront owns
the collaborators and hands them to each session explicitly.
"""

import threading
import time

import structlog
from protean.exceptions import ValidationError

from inventory.stock.validator import StockValidator
from ordering.cart.cart import cart_item_id_for
from ordering.cart.storage import MemoryCartStorage
from ordering.cart.store import CartStore
from ordering.checkout.flow import CheckoutFlow
from ordering.checkout.session import CheckoutStep
from ordering.exceptions import InsufficientStockError
from ordering.order.placement import OrderPlacement
from ordering.pricing.config import DEFAULT_PRICING, PricingConfig
from ordering.pricing.live import CartPricing

logger = structlog.get_logger(__name__)

# Seconds without a request after which a shopper session is dropped
DEFAULT_IDLE_TIMEOUT = 30 * 60


class ShopperSession:
    def __init__(self, shopper_id, storefront: "Storefront"):
        self.shopper_id = shopper_id
        self.storefront = storefront
        self.store = CartStore(storage=storefront.storage, shopper_id=shopper_id)
        self.pricing = CartPricing(
            self.store,
            storefront.catalog,
            coupons=storefront.coupons,
            config=storefront.config,
        )
        self.checkout: CheckoutFlow | None = None

    @property
    def breakdown(self):
        return self.pricing.breakdown

    @property
    def busy(self) -> bool:
        return self.checkout is not None and self.checkout.busy

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def add_product(self, product_id, quantity=1, selected_options=None) -> str:
        """Add a catalog product to the cart after an advisory stock check.

        ``selected_options`` of None picks the product's default options.
        """
        product = self.storefront.catalog.get_product(product_id)
        if product is None:
            raise ValidationError({"product_id": [f"Product {product_id} does not exist"]})
        if selected_options is None:
            selected_options = product.default_options

        # An equivalent saved line comes back into the cart with this add
        in_cart = self.store.quantity_of(product.product_id)
        saved = self.store.saved_line(cart_item_id_for(product.product_id, selected_options))
        if saved is not None:
            in_cart += saved.quantity

        check = self.storefront.validator.validate(product.product_id, quantity, quantity_already_in_cart=in_cart)
        if not check.ok:
            raise InsufficientStockError(product.product_id, check.available_remaining, title=product.title)

        return self.store.add_to_cart(
            product.product_id,
            quantity,
            selected_options=selected_options,
            unit_price_snapshot=float(product.price),
        )

    def update_quantity(self, cart_item_id, quantity):
        """Set a line's quantity. Only increases are checked against stock."""
        line = self.store.line(cart_item_id)
        if line is not None and quantity > line.quantity:
            check = self.storefront.validator.validate(
                line.product_id,
                quantity - line.quantity,
                quantity_already_in_cart=self.store.quantity_of(line.product_id),
            )
            if not check.ok:
                product = self.storefront.catalog.get_product(line.product_id)
                title = product.title if product else None
                raise InsufficientStockError(line.product_id, check.available_remaining, title=title)

        self.store.update_quantity(cart_item_id, quantity)

    def remove_item(self, cart_item_id):
        self.store.remove_item(cart_item_id)

    def save_for_later(self, cart_item_id):
        self.store.save_for_later(cart_item_id)

    def move_to_cart(self, cart_item_id):
        self.store.move_to_cart(cart_item_id)

    def remove_saved(self, cart_item_id):
        self.store.remove_saved(cart_item_id)

    # -------------------------------------------------------------------
    # Pricing inputs
    # -------------------------------------------------------------------
    def apply_coupon(self, code):
        return self.pricing.apply_coupon(code)

    def remove_coupon(self):
        return self.pricing.remove_coupon()

    def set_shipping_method(self, method):
        return self.pricing.set_shipping_method(method)

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def start_checkout(self, customer_id=None) -> CheckoutFlow:
        """Return the checkout in progress, or start a new one."""
        if self.checkout is None or self.checkout.step is CheckoutStep.PLACED:
            self.checkout = CheckoutFlow(
                self.store,
                self.pricing,
                self.storefront.gateway,
                self.storefront.placement,
                customer_id=customer_id,
            )
            logger.info("Checkout started", shopper_id=self.shopper_id, checkout_id=str(self.checkout.session.id))
        return self.checkout

    def current_checkout(self) -> CheckoutFlow:
        if self.checkout is None:
            raise ValidationError({"checkout": ["No checkout in progress"]})
        return self.checkout

    def abandon_checkout(self):
        """Forget the checkout. Any payment intent it created is left to expire."""
        if self.checkout is not None:
            logger.info("Checkout abandoned", shopper_id=self.shopper_id, checkout_id=str(self.checkout.session.id))
        self.checkout = None

    async def place_order(self) -> str | None:
        return await self.current_checkout().place_order()


class Storefront:
    def __init__(
        self,
        catalog,
        coupons,
        gateway,
        storage=None,
        config: PricingConfig | None = None,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock=time.monotonic,
    ):
        self.catalog = catalog
        self.coupons = coupons
        self.gateway = gateway
        self.storage = storage if storage is not None else MemoryCartStorage()
        self.config = config or DEFAULT_PRICING
        self.validator = StockValidator(catalog)
        self.placement = OrderPlacement(catalog, config=self.config)
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: dict[str, ShopperSession] = {}
        self._last_seen: dict[str, float] = {}
        self._lock = threading.Lock()

    def session(self, shopper_id) -> ShopperSession:
        """Get the shopper's session, creating (and hydrating) it on first use.

        Sessions idle for longer than ``idle_timeout`` are dropped on the way;
        their carts come back from storage on the shopper's next request.
        """
        shopper_id = str(shopper_id)
        now = self._clock()
        with self._lock:
            evicted = self._evict_idle(now, keep=shopper_id)
            found = self._sessions.get(shopper_id)
            if found is None:
                found = ShopperSession(shopper_id, self)
                self._sessions[shopper_id] = found
            self._last_seen[shopper_id] = now

        for ended in evicted:
            ended.pricing.detach()
        if evicted:
            logger.info("Idle shopper sessions evicted", count=len(evicted))
        return found

    def end_session(self, shopper_id):
        with self._lock:
            ended = self._sessions.pop(str(shopper_id), None)
            self._last_seen.pop(str(shopper_id), None)
        if ended is not None:
            ended.pricing.detach()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def _evict_idle(self, now, keep) -> list[ShopperSession]:
        idle = [
            shopper_id
            for shopper_id, seen in self._last_seen.items()
            if shopper_id != keep and now - seen > self.idle_timeout and not self._sessions[shopper_id].busy
        ]
        evicted = []
        for shopper_id in idle:
            del self._last_seen[shopper_id]
            evicted.append(self._sessions.pop(shopper_id))
        return evicted
