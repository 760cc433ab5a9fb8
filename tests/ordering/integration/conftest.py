"""TestClient fixtures for the ordering API."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.routes import cart_router, checkout_router, customer_router, order_router
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client(storefront):
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(customer_router)
    register_exception_handlers(app)
    app.state.storefront = storefront
    return TestClient(app, headers={"X-Session-Id": "shopper-api"})

