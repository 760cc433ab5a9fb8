"""Payment gateway port (abstract interface).

Defines the payment-intent contract the checkout relies on. Swapping the
FakeGateway (dev/test) for a real processor adapter changes nothing in the
ordering code.

Calls are coroutines: talking to the processor is the one place checkout
suspends.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class IntentResult:
    """Result of creating or updating a payment intent."""

    success: bool
    intent_id: str | None = None
    client_secret: str | None = None
    amount: float | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def create_intent(self, amount: float, currency: str, idempotency_key: str) -> IntentResult:
        """Create a payment intent for ``amount``.

        Repeating the call with the same ``idempotency_key`` must return the
        intent created the first time rather than a new one.
        """
        ...

    @abstractmethod
    async def update_intent(self, intent_id: str, amount: float) -> IntentResult:
        """Change the amount of an existing, unconfirmed payment intent."""
        ...
