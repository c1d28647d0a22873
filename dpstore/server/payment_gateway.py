"""
Stripe boundary: checkout session creation and webhook verification.
"""

from __future__ import annotations

import logging

import pydantic
import stripe

from dpstore.common.exceptions import BoundaryError, SignatureVerificationError
from dpstore.common.models import CheckoutSession, PricedLine, StripeEvent

logger = logging.getLogger(__name__)


class StripeGateway:
    """Payment provider adapter backed by the Stripe SDK."""

    def __init__(
        self,
        api_key: str | None,
        webhook_secret: str | None,
        currency: str = "eur",
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    def _line_item(self, line: PricedLine, description: str) -> dict:
        product_data = {"name": line.name}
        if description:
            product_data["description"] = description
        return {
            "price_data": {
                "currency": self.currency,
                "product_data": product_data,
                "unit_amount": int(line.amount),
            },
            "quantity": 1,
        }

    def create_checkout_session(
        self,
        *,
        lines: list[PricedLine],
        description: str,
        customer_email: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Create a one-off payment session and return its redirect URL."""
        if not self.api_key:
            raise BoundaryError("Payment provider is not configured", 503)
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                line_items=[self._line_item(line, description) for line in lines],
                customer_email=customer_email,
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
            )
        except stripe.StripeError as err:
            logger.error("Stripe error: %s", err.user_message or err)
            raise BoundaryError(
                err.user_message or "Payment provider error", err.http_status
            ) from err

        logger.info("Created checkout session %s", session.id)
        return CheckoutSession(url=session.url, session_id=session.id)

    def construct_event(self, payload: bytes, signature: str) -> StripeEvent:
        """Verify the Stripe-Signature header and parse the event envelope."""
        if not self.webhook_secret:
            raise SignatureVerificationError("webhook secret not configured")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
            return StripeEvent.model_validate_json(payload)
        except stripe.SignatureVerificationError as err:
            raise SignatureVerificationError(str(err)) from err
        except (ValueError, pydantic.ValidationError) as err:
            raise SignatureVerificationError(f"malformed event: {err}") from err
