import logging
from decimal import Decimal
from typing import Optional

import stripe

logger = logging.getLogger(__name__)


class PaymentVerificationError(Exception):
    pass


class PaymentVerifier:
    """
    Confirms with the payment gateway that a plan purchase was actually paid.

    test_mode is passed in by whoever builds the verifier (see
    app.core.dependencies.get_payment_verifier); there is no global switch.
    """

    def __init__(self, api_key: Optional[str], *, test_mode: bool = False):
        self.api_key = api_key
        self.test_mode = test_mode

    @property
    def configured(self) -> bool:
        return bool(self.api_key) and "YOUR_STRIPE_SECRET_KEY" not in self.api_key

    def verify(self, payment_intent_id: Optional[str], expected_amount: Decimal, currency: str) -> bool:
        if self.test_mode:
            logger.info(f"Payment test mode: accepting payment {payment_intent_id!r} without gateway lookup")
            return True

        if not payment_intent_id:
            raise PaymentVerificationError("Payment reference is required")
        if not self.configured:
            logger.error("Stripe secret key is not configured. Cannot verify payment.")
            raise PaymentVerificationError("Payment system configuration error.")

        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe API error while verifying {payment_intent_id}: {e}")
            user_message = getattr(e, "user_message", None) or str(e)
            raise PaymentVerificationError(f"Payment gateway error: {user_message}") from e

        amount_in_minor_units = int(Decimal(expected_amount) * 100)
        if intent.status != "succeeded":
            logger.warning(f"PaymentIntent {payment_intent_id} has status {intent.status}")
            return False
        if intent.amount_received != amount_in_minor_units or intent.currency != currency.lower():
            logger.warning(
                f"PaymentIntent {payment_intent_id} paid {intent.amount_received} {intent.currency}, "
                f"expected {amount_in_minor_units} {currency.lower()}"
            )
            return False
        return True
