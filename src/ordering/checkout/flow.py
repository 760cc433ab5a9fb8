"""Checkout flow: drives a CheckoutSession against the payment gateway and order placement.

Gateway calls are suspension points. While a forward transition or a
submission is in flight, a second one is refused with CheckoutBusyError
instead of racing the first, so one checkout creates at most one payment
intent and places at most one order. Step jumps are refused while the
order is being placed, and the order commits exactly the lines the payment
intent was last sized for.
"""

import structlog
from protean.exceptions import ValidationError

from ordering.checkout.session import CheckoutSession, CheckoutStep
from ordering.exceptions import CheckoutBusyError, PaymentIntentError

logger = structlog.get_logger(__name__)

RECONCILE_ATTEMPTS = 3


class CheckoutFlow:
    def __init__(self, store, pricing, gateway, placement, customer_id=None):
        self.store = store
        self.pricing = pricing
        self.gateway = gateway
        self.placement = placement
        self.session = CheckoutSession.start(customer_id=customer_id)
        self._advancing = False
        self._placing = False

    @property
    def step(self) -> CheckoutStep:
        return self.session.current_step

    @property
    def client_secret(self) -> str | None:
        return self.session.client_secret

    @property
    def busy(self) -> bool:
        return self._advancing or self._placing

    # -------------------------------------------------------------------
    # Step 1 inputs
    # -------------------------------------------------------------------
    def update_shipping_info(self, **fields):
        self.session.update_shipping_info(**fields)

    def select_address(self, address):
        self.session.select_address(address)

    # -------------------------------------------------------------------
    # Forward transitions
    # -------------------------------------------------------------------
    async def proceed_to_payment(self) -> CheckoutStep:
        """Shipping → Payment, creating or re-pricing the payment intent on the way."""
        if self.step is not CheckoutStep.SHIPPING:
            logger.info("Ignoring proceed to payment", checkout_id=str(self.session.id), step=self.step.name)
            return self.step
        if self._advancing:
            raise CheckoutBusyError("Proceeding to payment")

        missing = self.session.missing_shipping_fields()
        if missing:
            raise ValidationError({name: ["This field is required"] for name in missing})
        if self.store.is_empty:
            raise ValidationError({"cart": ["Your cart is empty"]})

        self._advancing = True
        try:
            await self._sync_intent()
            self.session.enter_payment()
        finally:
            self._advancing = False

        logger.info(
            "Checkout entered payment",
            checkout_id=str(self.session.id),
            intent_id=self.session.payment_intent_id,
            amount=self.session.intent_amount,
        )
        return self.step

    async def proceed_to_review(self, payment) -> CheckoutStep:
        """Payment → Review. Only a display label of the card is kept."""
        if self.step is not CheckoutStep.PAYMENT:
            logger.info("Ignoring proceed to review", checkout_id=str(self.session.id), step=self.step.name)
            return self.step
        if self._advancing:
            raise CheckoutBusyError("Proceeding to review")

        missing = payment.missing_fields()
        if missing:
            raise ValidationError({name: ["This field is required"] for name in missing})

        self.session.enter_review(payment.label())
        return self.step

    async def place_order(self) -> str | None:
        """Review → Placed. Returns the order id, or None when not at the review step.

        A checkout that already placed its order returns that order's id again.
        """
        if self.session.order_id:
            return self.session.order_id
        if self.step is not CheckoutStep.REVIEW:
            logger.info("Ignoring place order", checkout_id=str(self.session.id), step=self.step.name)
            return None
        if self._placing:
            raise CheckoutBusyError("Placing the order")

        self._placing = True
        try:
            lines = await self._reconcile_intent()
            if self.step is not CheckoutStep.REVIEW:
                raise ValidationError({"step": ["The checkout left the review step before the order was placed"]})

            order_id = self.placement.place(
                self.store,
                lines=lines,
                expected_total=self.session.intent_amount,
                shipping_address=self.session.shipping_address,
                coupon=self.pricing.coupon,
                shipping_method=self.pricing.shipping_method,
                payment_method=self.session.payment_method,
                payment_intent_id=self.session.payment_intent_id,
                customer_id=self.session.customer_id,
            )
            self.session.mark_placed(order_id)
        finally:
            self._placing = False

        return order_id

    # -------------------------------------------------------------------
    # Backward transitions
    # -------------------------------------------------------------------
    def go_to(self, step) -> CheckoutStep:
        """Jump back to an earlier step. Forward jumps and jumps after placement are ignored."""
        if self._placing:
            raise CheckoutBusyError("Placing the order")

        target = CheckoutStep(step)
        if target < self.step and self.step is not CheckoutStep.PLACED:
            self.session.move_back(target)
        else:
            logger.debug(
                "Ignoring step jump",
                checkout_id=str(self.session.id),
                from_step=self.step.name,
                to_step=target.name,
            )
        return self.step

    def go_back(self) -> CheckoutStep:
        if self.step in (CheckoutStep.PAYMENT, CheckoutStep.REVIEW):
            return self.go_to(self.step - 1)
        return self.step

    # -------------------------------------------------------------------
    # Payment intent
    # -------------------------------------------------------------------
    async def _reconcile_intent(self):
        """Sync the intent until it covers the cart as it stands once the gateway answers.

        Returns the cart lines the intent was sized for.
        """
        for _ in range(RECONCILE_ATTEMPTS):
            lines = self.store.lines
            await self._sync_intent()
            if self.store.lines == lines and self.pricing.refresh().total == self.session.intent_amount:
                return lines
            logger.info("Cart changed during payment intent sync", checkout_id=str(self.session.id))

        raise PaymentIntentError("The cart kept changing while the payment was being updated")

    async def _sync_intent(self):
        """Make the payment intent match the current total, creating it on first use."""
        breakdown = self.pricing.refresh()
        amount = breakdown.total

        if self.session.payment_intent_id is None:
            call = self.gateway.create_intent(amount, breakdown.currency, idempotency_key=str(self.session.id))
        elif self.session.intent_amount != amount:
            call = self.gateway.update_intent(self.session.payment_intent_id, amount)
        else:
            return

        try:
            result = await call
        except Exception as exc:
            logger.exception("Payment gateway call failed", checkout_id=str(self.session.id))
            raise PaymentIntentError(str(exc)) from exc

        if not result.success:
            logger.warning(
                "Payment intent refused",
                checkout_id=str(self.session.id),
                reason=result.failure_reason,
            )
            raise PaymentIntentError(result.failure_reason or "The payment could not be set up")

        self.session.record_intent(result.intent_id, result.client_secret, amount)
