"""Cart load test scenarios.

A browsing shopper who fills a cart, changes quantities, parks a line for
later and plays with coupons, without ever checking out.
"""

from urllib.parse import quote

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import cart_item_data, coupon_code
from loadtests.helpers.response import extract_error_detail, is_stock_conflict
from loadtests.helpers.state import ShopperState


class BrowsingJourney(SequentialTaskSet):
    """Add Items -> Update Quantity -> Save For Later -> Coupon -> View Cart."""

    def on_start(self):
        self.state = ShopperState()

    def _item_url(self, prefix, cart_item_id, suffix=""):
        return f"{prefix}/{quote(cart_item_id, safe='')}{suffix}"

    @task
    def add_items(self):
        for _ in range(3):
            with self.client.post(
                "/cart/items",
                json=cart_item_data(),
                headers=self.state.headers,
                catch_response=True,
                name="POST /cart/items",
            ) as resp:
                if resp.status_code == 201:
                    cart_item_id = resp.json()["cart_item_id"]
                    if cart_item_id not in self.state.cart_item_ids:
                        self.state.cart_item_ids.append(cart_item_id)
                elif is_stock_conflict(resp):
                    resp.success()
                else:
                    resp.failure(f"Add item failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def update_quantity(self):
        if not self.state.cart_item_ids:
            return
        with self.client.put(
            self._item_url("/cart/items", self.state.cart_item_ids[0]),
            json={"quantity": 1},
            headers=self.state.headers,
            catch_response=True,
            name="PUT /cart/items/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Update quantity failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def save_for_later(self):
        if len(self.state.cart_item_ids) < 2:
            return
        cart_item_id = self.state.cart_item_ids.pop()
        with self.client.post(
            self._item_url("/cart/items", cart_item_id, "/save-for-later"),
            headers=self.state.headers,
            catch_response=True,
            name="POST /cart/items/{id}/save-for-later",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Save for later failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def try_coupon(self):
        with self.client.post(
            "/cart/coupon",
            json={"coupon_code": coupon_code()},
            headers=self.state.headers,
            catch_response=True,
            name="POST /cart/coupon",
        ) as resp:
            # unknown codes are an expected 400
            if resp.status_code not in (200, 400):
                resp.failure(f"Apply coupon failed: {resp.status_code} - {extract_error_detail(resp)}")
            else:
                resp.success()

    @task
    def view_cart(self):
        self.client.get("/cart", headers=self.state.headers, name="GET /cart")

    @task
    def done(self):
        self.interrupt()


class BrowsingShopper(HttpUser):
    tasks = [BrowsingJourney]
    wait_time = between(1, 3)
