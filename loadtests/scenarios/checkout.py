"""Checkout load test scenarios.

Shoppers race through the full checkout against the demo catalog's small
stock counts, so a share of placements is expected to end in a stock
conflict once the last units are gone.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import cart_item_data, payment_data, shipping_data
from loadtests.helpers.response import extract_error_detail, is_stock_conflict
from loadtests.helpers.state import ShopperState


class CheckoutJourney(SequentialTaskSet):
    """Add Items -> Start Checkout -> Shipping -> Payment -> Review -> Place."""

    def on_start(self):
        self.state = ShopperState()

    def _step(self, method, url, name, **kwargs):
        with self.client.request(
            method,
            url,
            headers=self.state.headers,
            catch_response=True,
            name=name,
            **kwargs,
        ) as resp:
            if resp.status_code in (200, 201):
                return resp.json()
            if is_stock_conflict(resp):
                resp.success()
            else:
                resp.failure(f"{name} failed: {resp.status_code} - {extract_error_detail(resp)}")
            self.interrupt()

    @task
    def fill_cart(self):
        for product_id in ("tee-classic", "mug-enamel"):
            self._step("POST", "/cart/items", "POST /cart/items", json=cart_item_data(product_id))

    @task
    def start_checkout(self):
        data = self._step("POST", "/checkout", "POST /checkout", json={})
        self.state.checkout_id = data["checkout_id"]

    @task
    def shipping(self):
        self._step("PUT", "/checkout/shipping", "PUT /checkout/shipping", json=shipping_data())
        self._step("POST", "/checkout/payment", "POST /checkout/payment")

    @task
    def review(self):
        self._step("POST", "/checkout/review", "POST /checkout/review", json=payment_data())

    @task
    def place(self):
        data = self._step("POST", "/checkout/place", "POST /checkout/place")
        self.state.order_id = data["order_id"]

    @task
    def view_order(self):
        if self.state.order_id:
            self.client.get(f"/orders/{self.state.order_id}", name="GET /orders/{id}")

    @task
    def done(self):
        self.interrupt()


class CheckoutShopper(HttpUser):
    tasks = [CheckoutJourney]
    wait_time = between(1, 2)
