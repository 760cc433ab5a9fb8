"""Tests for the CheckoutSession state and its step guards."""

import pytest
from ordering.checkout.session import CheckoutSession, CheckoutStep, PaymentDetails, ShippingInfo
from ordering.shared.address import Address
from protean.exceptions import ValidationError

FORM = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "address": "12 Analytical Way",
    "city": "Springfield",
    "state": "IL",
    "zip": "62701",
}


def _session_at(step):
    session = CheckoutSession.start(customer_id="cust-001")
    if step is CheckoutStep.SHIPPING:
        return session
    session.update_shipping_info(**FORM)
    session.enter_payment()
    if step is CheckoutStep.PAYMENT:
        return session
    session.enter_review("Credit Card •••• 4242")
    if step is CheckoutStep.REVIEW:
        return session
    session.mark_placed("ord-001")
    return session


class TestShippingInfo:
    def test_blank_fields_are_missing(self):
        info = ShippingInfo(first_name="Ada", last_name="  ", city="Springfield")
        assert info.missing_fields() == ["last_name", "address", "state", "zip"]

    def test_to_address(self):
        address = ShippingInfo(**FORM).to_address()
        assert address.name == "Ada Lovelace"
        assert address.street == "12 Analytical Way"
        assert address.postal_code == "62701"
        assert address.country == "USA"


class TestPaymentDetails:
    def test_label_masks_all_but_last_four_digits(self):
        details = PaymentDetails(card_number="4242 4242 4242 4242", name_on_card="A L", expiry="12/30", cvc="123")
        assert details.label() == "Credit Card •••• 4242"

    def test_missing_fields(self):
        details = PaymentDetails(card_number="4242", name_on_card="", expiry="12/30")
        assert details.missing_fields() == ["name_on_card", "cvc"]


class TestShippingStep:
    def test_starts_at_shipping(self):
        session = CheckoutSession.start()
        assert session.current_step is CheckoutStep.SHIPPING

    def test_update_merges_fields(self):
        session = CheckoutSession.start()
        session.update_shipping_info(first_name="Ada")
        session.update_shipping_info(last_name="Lovelace")

        assert session.shipping_info.first_name == "Ada"
        assert session.shipping_info.last_name == "Lovelace"

    def test_unknown_field_rejected(self):
        session = CheckoutSession.start()
        with pytest.raises(ValidationError) as exc:
            session.update_shipping_info(country="UK")
        assert "country" in exc.value.messages

    def test_incomplete_form_blocks_payment(self):
        session = CheckoutSession.start()
        session.update_shipping_info(first_name="Ada")

        with pytest.raises(ValidationError) as exc:
            session.enter_payment()

        assert "zip" in exc.value.messages
        assert session.current_step is CheckoutStep.SHIPPING

    def test_selected_address_satisfies_guard(self):
        session = CheckoutSession.start()
        saved = Address(street="1 Main St", city="Springfield", postal_code="62701", country="USA")
        session.select_address(saved)

        assert session.missing_shipping_fields() == []
        session.enter_payment()
        assert session.current_step is CheckoutStep.PAYMENT
        assert session.shipping_address == saved

    def test_deselecting_address_falls_back_to_form(self):
        session = CheckoutSession.start()
        session.select_address(Address(street="1 Main St", city="X", postal_code="1", country="USA"))
        session.select_address(None)

        assert "first_name" in session.missing_shipping_fields()


class TestTransitions:
    def test_happy_path(self):
        session = _session_at(CheckoutStep.PLACED)
        assert session.current_step is CheckoutStep.PLACED
        assert session.order_id == "ord-001"
        assert session.payment_method == "Credit Card •••• 4242"

    def test_review_requires_payment_step(self):
        session = _session_at(CheckoutStep.SHIPPING)
        with pytest.raises(ValidationError):
            session.enter_review("Credit Card •••• 4242")

    def test_place_requires_review_step(self):
        session = _session_at(CheckoutStep.PAYMENT)
        with pytest.raises(ValidationError):
            session.mark_placed("ord-001")

    @pytest.mark.parametrize(
        "start, target",
        [
            (CheckoutStep.PAYMENT, CheckoutStep.SHIPPING),
            (CheckoutStep.REVIEW, CheckoutStep.PAYMENT),
            (CheckoutStep.REVIEW, CheckoutStep.SHIPPING),
        ],
    )
    def test_backward_moves_allowed(self, start, target):
        session = _session_at(start)
        session.move_back(target)
        assert session.current_step is target

    def test_backward_move_keeps_intent(self):
        session = _session_at(CheckoutStep.REVIEW)
        session.record_intent("pi_1", "secret", 43.88)

        session.move_back(CheckoutStep.SHIPPING)

        assert session.payment_intent_id == "pi_1"
        assert session.intent_amount == 43.88

    def test_forward_jump_is_not_a_move_back(self):
        session = _session_at(CheckoutStep.PAYMENT)
        with pytest.raises(ValidationError):
            session.move_back(CheckoutStep.REVIEW)

    def test_placed_session_is_frozen(self):
        session = _session_at(CheckoutStep.PLACED)
        with pytest.raises(ValidationError):
            session.move_back(CheckoutStep.REVIEW)
        with pytest.raises(ValidationError):
            session.update_shipping_info(first_name="Grace")
