"""Ordering errors that carry more than a field/message map.

All of them are ValidationErrors, so the API layer's Protean exception
handlers turn them into 400 responses with the messages as the body.
"""

from protean.exceptions import ValidationError


class InsufficientStockError(ValidationError):
    """Advisory stock check failed while adding to or growing a cart line."""

    def __init__(self, product_id, available_remaining, title=None):
        self.product_id = str(product_id)
        self.available_remaining = available_remaining
        name = title or self.product_id
        if available_remaining <= 0:
            message = f"You already have the maximum available quantity of {name} in your cart"
        else:
            message = f"Only {available_remaining} more {name} available"
        super().__init__({"quantity": [message]})


class StockConflictError(ValidationError):
    """Commit-time stock re-validation failed; nothing was placed or decremented."""

    def __init__(self, shortfalls):
        self.shortfalls = list(shortfalls)
        super().__init__(
            {
                "stock": [
                    f"Product {s.product_id}: requested {s.requested}, only {s.available} available"
                    for s in self.shortfalls
                ]
            }
        )


class PaymentIntentError(ValidationError):
    """The payment collaborator refused to create or update the payment intent."""

    def __init__(self, reason):
        self.reason = reason
        super().__init__({"payment": [reason]})


class CheckoutBusyError(ValidationError):
    """A forward transition or order submission is already in flight for this checkout."""

    def __init__(self, operation):
        self.operation = operation
        super().__init__({"checkout": [f"{operation} is already in progress"]})
