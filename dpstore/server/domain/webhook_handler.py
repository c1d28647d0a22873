"""
Webhook handler applying completed payments to the license store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from dpstore.common.exceptions import PersistenceError, SignatureVerificationError
from dpstore.common.models import ActivationRequest
from dpstore.server.license_store import normalize_features

if TYPE_CHECKING:
    from dpstore.common.interfaces import ILicenseStore, IPaymentGateway
    from dpstore.common.models import StripeEvent

CHECKOUT_COMPLETED = "checkout.session.completed"
ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"


class WebhookHandler:
    """Turns verified provider events into license activations."""

    def __init__(
        self,
        gateway: IPaymentGateway,
        store: ILicenseStore,
        known_features: Iterable[str] | None = None,
    ):
        self.gateway = gateway
        self.store = store
        # None accepts every feature the event names
        self.known_features = None if known_features is None else frozenset(known_features)
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def extract_activation(event: StripeEvent) -> ActivationRequest | None:
        """Return the activation carried by the event, if any.

        Sessions completed with a delayed payment method are applied on the
        async success event instead.
        """
        if event.type not in (CHECKOUT_COMPLETED, ASYNC_PAYMENT_SUCCEEDED):
            return None
        session = event.data.object
        if event.type == CHECKOUT_COMPLETED and session.get("payment_status") not in (
            None,
            "paid",
        ):
            return None

        metadata: dict[str, Any] = session.get("metadata") or {}
        serial = str(metadata.get("serial") or "").strip()
        if not serial:
            return None
        raw_features = str(metadata.get("features") or "")
        features = [feature for feature in raw_features.split(",") if feature.strip()]
        return ActivationRequest(serial=serial, features=features, event_id=event.id)

    def accepted_features(self, activation: ActivationRequest) -> list[str]:
        """Features of the activation that the catalog sells; others are logged."""
        if self.known_features is None:
            return activation.features
        accepted = []
        for feature in activation.features:
            tokens = normalize_features([feature])
            if tokens and tokens <= self.known_features:
                accepted.append(feature)
            else:
                self.logger.warning(
                    "Dropping unknown feature %r for %s from event %s",
                    feature,
                    activation.serial,
                    activation.event_id,
                )
        return accepted

    async def handle_webhook(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Handle webhook request."""
        try:
            event = self.gateway.construct_event(payload, signature)
        except SignatureVerificationError as err:
            self.logger.warning("Rejected payment event: %s", err)
            raise SignatureVerificationError() from err

        activation = self.extract_activation(event)
        if activation is None:
            self.logger.debug("Ignoring event %s of type %s", event.id, event.type)
            return {"received": True, "applied": False}

        try:
            await self.store.apply_activation(
                activation.serial, self.accepted_features(activation)
            )
        except PersistenceError:
            self.logger.exception(
                "Activation of %s from event %s was not persisted",
                activation.serial,
                activation.event_id,
            )
            raise
        return {"received": True, "applied": True}
