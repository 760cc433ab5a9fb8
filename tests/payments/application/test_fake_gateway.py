"""Tests for the fake payment gateway's intent API."""

import asyncio

import pytest
from payments.gateway import FakeGateway


@pytest.fixture()
def gateway():
    return FakeGateway()


class TestCreateIntent:
    def test_creates_intent(self, gateway):
        result = asyncio.run(gateway.create_intent(48.2, "USD", idempotency_key="chk-1"))

        assert result.success
        assert result.intent_id.startswith("pi_fake_")
        assert result.client_secret.startswith(result.intent_id)
        assert gateway.intents[result.intent_id]["amount"] == 48.2

    def test_same_key_returns_same_intent(self, gateway):
        first = asyncio.run(gateway.create_intent(10.0, "USD", idempotency_key="chk-1"))
        second = asyncio.run(gateway.create_intent(10.0, "USD", idempotency_key="chk-1"))

        assert first.intent_id == second.intent_id
        assert len(gateway.intents) == 1
        assert len(gateway.calls_to("create_intent")) == 2

    def test_configured_failure(self, gateway):
        gateway.configure(should_succeed=False, failure_reason="Insufficient funds")

        result = asyncio.run(gateway.create_intent(10.0, "USD", idempotency_key="chk-1"))

        assert not result.success
        assert result.failure_reason == "Insufficient funds"
        assert gateway.intents == {}


class TestUpdateIntent:
    def test_updates_amount(self, gateway):
        created = asyncio.run(gateway.create_intent(10.0, "USD", idempotency_key="chk-1"))

        result = asyncio.run(gateway.update_intent(created.intent_id, 12.5))

        assert result.success
        assert result.client_secret == created.client_secret
        assert gateway.intents[created.intent_id]["amount"] == 12.5

    def test_unknown_intent(self, gateway):
        result = asyncio.run(gateway.update_intent("pi_missing", 5.0))

        assert not result.success
        assert "pi_missing" in result.failure_reason
