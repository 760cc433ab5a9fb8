"""Faker-based payloads for the storefront load tests.

Product ids match the demo catalog served by ``src/app.py``.
"""

import random

from faker import Faker

fake = Faker()

PRODUCTS = {
    "tee-classic": {"size": ["S", "M", "L", "XL"], "color": ["Black", "White"]},
    "hoodie-zip": {"size": ["M", "L"]},
    "mug-enamel": {},
}

COUPONS = ["SAVE10", "FLAT15", "EXPIRED5"]


def cart_item_data(product_id: str | None = None) -> dict:
    """AddToCartRequest payload with a random option combination."""
    product_id = product_id or random.choice(list(PRODUCTS))
    options = {name: random.choice(values) for name, values in PRODUCTS[product_id].items()}
    return {
        "product_id": product_id,
        "quantity": random.randint(1, 2),
        "selected_options": options,
    }


def shipping_data() -> dict:
    """ShippingInfoRequest payload with every required field filled in."""
    return {
        "first_name": fake.first_name()[:100],
        "last_name": fake.last_name()[:100],
        "address": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state_abbr(),
        "zip": fake.zipcode()[:20],
    }


def payment_data() -> dict:
    """PaymentDetailsRequest payload. The numbers are test card numbers only."""
    return {
        "card_number": random.choice(["4242424242424242", "5555555555554444"]),
        "name_on_card": fake.name()[:255],
        "expiry": fake.credit_card_expire(),
        "cvc": f"{random.randint(0, 999):03d}",
    }


def coupon_code() -> str:
    return random.choice(COUPONS)
