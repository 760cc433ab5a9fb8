"""Read side for placed orders."""

from protean.utils.globals import current_domain

from ordering.order.order import Order


def get_order(order_id) -> Order:
    """Fetch one order. Raises ObjectNotFoundError when it does not exist."""
    return current_domain.repository_for(Order).get(order_id)


def orders_for_customer(customer_id) -> list[Order]:
    """All orders placed by ``customer_id``, newest first."""
    repo = current_domain.repository_for(Order)
    orders = repo._dao.query.filter(customer_id=str(customer_id)).all().items
    return sorted(orders, key=lambda order: order.created_at, reverse=True)
