"""
Checkout request handler for the order service.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from dpstore.common.exceptions import MissingRequiredFieldError
from dpstore.server.persistence import normalize_serial

if TYPE_CHECKING:
    from dpstore.common.interfaces import IPaymentGateway
    from dpstore.common.models import CheckoutSession, OrderRequest, Quote
    from dpstore.server.pricing import PricingEngine

DEFAULT_DESCRIPTION = "Customized configuration"


class CheckoutHandler:
    """Validates orders, prices them and opens a provider checkout session."""

    def __init__(  # noqa: PLR0913
        self,
        pricing: PricingEngine,
        gateway: IPaymentGateway,
        success_url: str,
        cancel_url: str,
        max_description_len: int = 500,
    ):
        self.pricing = pricing
        self.gateway = gateway
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.max_description_len = max_description_len
        self.logger = logging.getLogger(__name__)

    def validate_order(self, req: OrderRequest) -> tuple[Quote, str, str]:
        """Fail fast on anything that would make the checkout invalid.

        Returns the trusted quote, the contact email and the normalized serial
        (empty when the order has none).
        """
        if not req.items:
            raise MissingRequiredFieldError("items")
        email = (req.email or "").strip()
        if not email:
            raise MissingRequiredFieldError("email")

        quote = self.pricing.quote(req.items)

        serial = normalize_serial(req.serial or "")
        if not serial and any(line.feature for line in quote.lines):
            raise MissingRequiredFieldError("serial")
        return quote, email, serial

    @staticmethod
    def build_metadata(quote: Quote, email: str, serial: str) -> dict[str, str]:
        """Metadata echoed back by the provider in the completed-payment event."""
        metadata = {"email": email}
        if serial:
            feature_ids = dict.fromkeys(line.id for line in quote.lines if line.feature)
            metadata["serial"] = serial
            metadata["features"] = ",".join(feature_ids)
        return metadata

    async def handle_checkout(self, req: OrderRequest) -> CheckoutSession:
        """Handle checkout request."""
        quote, email, serial = self.validate_order(req)
        description = (req.description or DEFAULT_DESCRIPTION)[: self.max_description_len]
        metadata = self.build_metadata(quote, email, serial)

        self.logger.info(
            "Checkout for %s: %d items, total %d %s",
            serial or email,
            len(quote.lines),
            quote.total,
            quote.currency,
        )
        # Stripe SDK calls are blocking
        return await asyncio.to_thread(
            self.gateway.create_checkout_session,
            lines=quote.lines,
            description=description,
            customer_email=email,
            metadata=metadata,
            success_url=self.success_url,
            cancel_url=self.cancel_url,
        )
