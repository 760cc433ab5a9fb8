from decimal import Decimal

import pytest
from inventory.catalog.memory_adapter import InMemoryCatalog


@pytest.fixture()
def catalog():
    catalog = InMemoryCatalog()
    catalog.add_product("tee", "Classic Tee", Decimal("20.00"), stock=10)
    catalog.add_product("poster", "Gallery Poster", Decimal("25.00"), stock=1)
    return catalog
