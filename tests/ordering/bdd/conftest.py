"""Shared BDD fixtures and step definitions for the Ordering domain."""

import asyncio

import pytest
from ordering.checkout.session import PaymentDetails
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def shopper(storefront):
    return storefront.session("shopper-bdd")


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def card():
    return PaymentDetails(card_number="4242 4242 4242 4242", name_on_card="Ada Lovelace", expiry="12/30", cvc="123")


@pytest.fixture()
def attempt(error):
    """Run an action, keeping a ValidationError for a later Then step."""

    def run(action, *args, **kwargs):
        try:
            result = action(*args, **kwargs)
            if asyncio.iscoroutine(result):
                result = asyncio.run(result)
            return result
        except ValidationError as exc:
            error["exc"] = exc
            return None

    return run


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalog has {stock:d} units of "{product_id}"'))
def _(catalog, product_id, stock):
    catalog.set_stock(product_id, stock)


@given(parsers.cfparse('the cart holds {quantity:d} of "{product_id}"'))
def _(shopper, product_id, quantity):
    shopper.add_product(product_id, quantity)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the cart holds {quantity:d} of "{product_id}"'))
def _(shopper, product_id, quantity):
    assert shopper.store.quantity_of(product_id) == quantity


@then("the cart is empty")
def _(shopper):
    assert shopper.store.is_empty


@then(parsers.cfparse('the request is rejected with "{message}"'))
def _(error, message):
    assert error["exc"] is not None
    assert any(message in text for texts in error["exc"].messages.values() for text in texts)


@then(parsers.cfparse("the total is {total:g}"))
def _(shopper, total):
    assert shopper.breakdown.total == total
