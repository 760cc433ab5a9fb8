"""Storefront FastAPI application.

Serves the cart, checkout and order API for the ordering domain. The
collaborators (catalog, coupons, payment gateway, cart storage) are built
here and handed to a Storefront; each request runs inside the ordering
domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from inventory.catalog.memory_adapter import InMemoryCatalog
from ordering.api.routes import cart_router, checkout_router, customer_router, order_router
from ordering.cart.storage import JsonFileCartStorage, MemoryCartStorage
from ordering.domain import ordering
from ordering.pricing.config import PricingConfig
from ordering.storefront import DEFAULT_IDLE_TIMEOUT, Storefront
from ordering.utils.logging import clear_context
from payments.gateway import FakeGateway
from promotions.coupons.static_lookup import StaticCouponLookup

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the configuration overlay ("test" in the test suite).
ordering.init()

DEMO_PRODUCTS = [
    {
        "product_id": "tee-classic",
        "title": "Classic Tee",
        "price": "20.00",
        "stock": 25,
        "thumbnail": "/img/tee-classic.jpg",
        "default_options": {"size": "M", "color": "Black"},
    },
    {
        "product_id": "hoodie-zip",
        "title": "Zip Hoodie",
        "price": "49.99",
        "stock": 10,
        "thumbnail": "/img/hoodie-zip.jpg",
        "default_options": {"size": "L"},
    },
    {
        "product_id": "mug-enamel",
        "title": "Enamel Mug",
        "price": "12.50",
        "stock": 3,
        "thumbnail": "/img/mug-enamel.jpg",
    },
]


def demo_catalog() -> InMemoryCatalog:
    catalog = InMemoryCatalog()
    for product in DEMO_PRODUCTS:
        catalog.add_product(**product)
    return catalog


def build_storefront(catalog=None, coupons=None, gateway=None, storage=None, config=None) -> Storefront:
    """Assemble a Storefront, falling back to the in-process demo collaborators."""
    if storage is None:
        cart_dir = os.getenv("STOREFRONT_CART_DIR")
        storage = JsonFileCartStorage(cart_dir) if cart_dir else MemoryCartStorage()
    return Storefront(
        catalog=catalog if catalog is not None else demo_catalog(),
        coupons=coupons if coupons is not None else StaticCouponLookup(),
        gateway=gateway if gateway is not None else FakeGateway(),
        storage=storage,
        config=config or PricingConfig.from_env(),
        idle_timeout=float(os.getenv("STOREFRONT_SESSION_IDLE_SECONDS", DEFAULT_IDLE_TIMEOUT)),
    )


def create_app(storefront: Storefront | None = None) -> FastAPI:
    app = FastAPI(
        title="Storefront API",
        description="Cart, pricing, checkout and order placement",
    )
    app.state.storefront = storefront or build_storefront()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the ordering domain context for each request."""
        try:
            with ordering.domain_context():
                return await call_next(request)
        finally:
            clear_context()

    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(customer_router)
    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domains": {"ordering": {"name": ordering.name}}})

    return app


app = create_app()
