from decimal import Decimal

import pytest
from inventory.catalog.memory_adapter import InMemoryCatalog
from ordering.cart.storage import MemoryCartStorage
from ordering.cart.store import CartStore
from ordering.order.placement import OrderPlacement
from ordering.pricing.live import CartPricing
from ordering.storefront import Storefront
from payments.gateway import FakeGateway
from promotions.coupons.static_lookup import StaticCouponLookup
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalog():
    catalog = InMemoryCatalog()
    catalog.add_product("tee", "Classic Tee", Decimal("20.00"), stock=10, thumbnail="/img/tee.jpg")
    catalog.add_product("mug", "Enamel Mug", Decimal("12.50"), stock=3)
    catalog.add_product("poster", "Gallery Poster", Decimal("25.00"), stock=1)
    catalog.add_product(
        "hoodie",
        "Zip Hoodie",
        Decimal("49.99"),
        stock=5,
        default_options={"size": "L"},
    )
    return catalog


@pytest.fixture()
def coupons():
    return StaticCouponLookup()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def storage():
    return MemoryCartStorage()


@pytest.fixture()
def store(storage):
    return CartStore(storage=storage, shopper_id="shopper-1")


@pytest.fixture()
def pricing(store, catalog, coupons):
    return CartPricing(store, catalog, coupons=coupons)


@pytest.fixture()
def placement(catalog):
    return OrderPlacement(catalog)


@pytest.fixture()
def storefront(catalog, coupons, gateway, storage):
    return Storefront(catalog=catalog, coupons=coupons, gateway=gateway, storage=storage)


@pytest.fixture()
def shipping_form():
    return {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "address": "12 Analytical Way",
        "city": "Springfield",
        "state": "IL",
        "zip": "62701",
    }
