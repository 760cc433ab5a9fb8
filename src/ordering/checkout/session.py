"""Checkout session: the state of one multi-step checkout.

    SHIPPING → PAYMENT → REVIEW → PLACED

Forward edges are guarded (complete shipping details, complete payment
details, a successful placement). Backward edges to an earlier step are
always allowed until the order is placed. The session lives only as long as
the checkout page does and is never persisted.
"""

from enum import IntEnum

from protean.exceptions import ValidationError
from protean.fields import Float, Integer, String, ValueObject

from ordering.domain import ordering
from ordering.shared.address import Address


class CheckoutStep(IntEnum):
    SHIPPING = 1
    PAYMENT = 2
    REVIEW = 3
    PLACED = 4


_SHIPPING_FIELDS = ("first_name", "last_name", "address", "city", "state", "zip")


@ordering.value_object
class ShippingInfo:
    """The shipping form as typed by the shopper. Any field may still be blank."""

    first_name = String(max_length=100)
    last_name = String(max_length=100)
    address = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    zip = String(max_length=20)

    def missing_fields(self) -> list[str]:
        return [name for name in _SHIPPING_FIELDS if not (getattr(self, name) or "").strip()]

    def to_address(self, country="USA") -> Address:
        return Address(
            name=f"{self.first_name} {self.last_name}".strip(),
            street=self.address,
            city=self.city,
            state=self.state,
            postal_code=self.zip,
            country=country,
        )


@ordering.value_object
class PaymentDetails:
    """Card details entered at the payment step. Never stored on the session."""

    card_number = String(max_length=30)
    name_on_card = String(max_length=255)
    expiry = String(max_length=7)
    cvc = String(max_length=4)

    def missing_fields(self) -> list[str]:
        names = ("card_number", "name_on_card", "expiry", "cvc")
        return [name for name in names if not (getattr(self, name) or "").strip()]

    def label(self) -> str:
        digits = "".join(ch for ch in self.card_number or "" if ch.isdigit())
        return f"Credit Card •••• {digits[-4:]}"


@ordering.aggregate
class CheckoutSession:
    customer_id = String(max_length=255)
    step = Integer(default=CheckoutStep.SHIPPING.value)
    shipping_info = ValueObject(ShippingInfo)
    selected_address = ValueObject(Address)
    payment_method = String(max_length=100)
    payment_intent_id = String(max_length=255)
    client_secret = String(max_length=255)
    intent_amount = Float()
    order_id = String(max_length=255)

    @classmethod
    def start(cls, customer_id=None):
        return cls(
            customer_id=str(customer_id) if customer_id else None,
            step=CheckoutStep.SHIPPING.value,
            shipping_info=ShippingInfo(),
        )

    @property
    def current_step(self) -> CheckoutStep:
        return CheckoutStep(self.step)

    @property
    def shipping_address(self) -> Address:
        """The address the order ships to: the chosen saved address, else the typed form."""
        if self.selected_address is not None:
            return self.selected_address
        return self.shipping_info.to_address()

    def _assert_not_placed(self):
        if self.current_step is CheckoutStep.PLACED:
            raise ValidationError({"checkout": ["This checkout has already been placed"]})

    # -------------------------------------------------------------------
    # Step 1: shipping
    # -------------------------------------------------------------------
    def update_shipping_info(self, **fields):
        self._assert_not_placed()
        unknown = set(fields) - set(_SHIPPING_FIELDS)
        if unknown:
            raise ValidationError({name: ["Unknown shipping field"] for name in sorted(unknown)})

        current = {name: getattr(self.shipping_info, name) for name in _SHIPPING_FIELDS} if self.shipping_info else {}
        current.update(fields)
        self.shipping_info = ShippingInfo(**current)

    def select_address(self, address):
        """Use a saved address instead of the typed form. ``None`` goes back to the form."""
        self._assert_not_placed()
        self.selected_address = address

    def missing_shipping_fields(self) -> list[str]:
        if self.selected_address is not None:
            return []
        return (self.shipping_info or ShippingInfo()).missing_fields()

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def record_intent(self, intent_id, client_secret, amount):
        self.payment_intent_id = intent_id
        self.client_secret = client_secret
        self.intent_amount = amount

    def enter_payment(self):
        if self.current_step is not CheckoutStep.SHIPPING:
            raise ValidationError({"step": ["Payment can only be entered from the shipping step"]})
        missing = self.missing_shipping_fields()
        if missing:
            raise ValidationError({name: ["This field is required"] for name in missing})
        self.step = CheckoutStep.PAYMENT.value

    def enter_review(self, payment_method):
        if self.current_step is not CheckoutStep.PAYMENT:
            raise ValidationError({"step": ["Review can only be entered from the payment step"]})
        self.payment_method = payment_method
        self.step = CheckoutStep.REVIEW.value

    def move_back(self, target):
        """Return to an earlier step. Moving forward or staying put is not a move back."""
        target = CheckoutStep(target)
        self._assert_not_placed()
        if target >= self.current_step:
            raise ValidationError({"step": [f"Cannot move back from {self.current_step.name} to {target.name}"]})
        self.step = target.value

    def mark_placed(self, order_id):
        if self.current_step is not CheckoutStep.REVIEW:
            raise ValidationError({"step": ["Only a reviewed checkout can be placed"]})
        self.order_id = str(order_id)
        self.step = CheckoutStep.PLACED.value
