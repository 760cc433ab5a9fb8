"""Postal address value object shared by checkout and orders."""

from protean.fields import String

from ordering.domain import ordering


@ordering.value_object
class Address:
    """A delivery or billing address captured at checkout time.

    Once recorded on an Order, the address is immutable: it is where that order
    went, whatever the shopper's saved addresses say later.
    """

    name = String(max_length=255)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)
