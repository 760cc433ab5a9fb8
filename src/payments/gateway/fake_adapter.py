"""Configurable fake payment gateway for development and testing.

Simulates a payment processor's intent API without any external calls. It can
be configured at runtime to succeed or fail, and it records every call so
tests can assert how many intents checkout created.
"""

import asyncio
from uuid import uuid4

from payments.gateway.port import IntentResult, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self.intents: dict[str, dict] = {}
        self._intents_by_key: dict[str, str] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    async def create_intent(self, amount: float, currency: str, idempotency_key: str) -> IntentResult:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "idempotency_key": idempotency_key,
            }
        )
        await asyncio.sleep(0)

        if not self.should_succeed:
            return IntentResult(success=False, failure_reason=self.failure_reason)

        intent_id = self._intents_by_key.get(idempotency_key)
        if intent_id is None:
            intent_id = f"pi_fake_{uuid4().hex[:16]}"
            self.intents[intent_id] = {
                "amount": amount,
                "currency": currency,
                "client_secret": f"{intent_id}_secret_{uuid4().hex[:12]}",
            }
            self._intents_by_key[idempotency_key] = intent_id

        intent = self.intents[intent_id]
        return IntentResult(
            success=True,
            intent_id=intent_id,
            client_secret=intent["client_secret"],
            amount=intent["amount"],
        )

    async def update_intent(self, intent_id: str, amount: float) -> IntentResult:
        self.calls.append({"method": "update_intent", "intent_id": intent_id, "amount": amount})
        await asyncio.sleep(0)

        if not self.should_succeed:
            return IntentResult(success=False, failure_reason=self.failure_reason)

        intent = self.intents.get(intent_id)
        if intent is None:
            return IntentResult(success=False, failure_reason=f"No such payment intent: {intent_id}")

        intent["amount"] = amount
        return IntentResult(
            success=True,
            intent_id=intent_id,
            client_secret=intent["client_secret"],
            amount=amount,
        )
