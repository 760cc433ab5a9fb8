"""Storefront Load Testing: Locust entry point.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Checkout race only, headless:
    locust -f loadtests/locustfile.py CheckoutShopper --headless \
           -u 50 -r 5 -t 120s --csv=results/loadtest
"""

import logging
import time

from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.cart import BrowsingShopper  # noqa: F401
from loadtests.scenarios.checkout import CheckoutShopper  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log the API error body for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, extract_error_detail(response))


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}\n")


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Print how many placements lost the race for stock."""
    stats = environment.stats.get("POST /checkout/place", "POST")
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Orders attempted: {stats.num_requests}, failed: {stats.num_failures}\n")
