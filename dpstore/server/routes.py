"""
Routes for the store backend.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request

from dpstore.common.exceptions import DPStoreError
from dpstore.common.models import (
    CheckoutSession,
    LicenseView,
    OrderRequest,
    Quote,
    QuoteRequest,
)

from .services import OrderService


class OrderRoutes:
    """Handles FastAPI routes for the store backend."""

    def __init__(self, service: OrderService):
        self.service = service

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""

        app.get("/health")(self.health)
        app.post("/quote")(self.quote)
        app.post("/create-checkout-session")(self.create_checkout_session)
        app.post("/webhook")(self.webhook)
        app.get("/licenses/{serial}")(self.lookup)

    async def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return self.service.health()

    async def quote(self, req: QuoteRequest) -> Quote:
        """Handle /quote endpoint."""
        try:
            return self.service.quote(req)
        except DPStoreError as e:
            raise HTTPException(e.status_code, str(e))

    async def create_checkout_session(self, req: OrderRequest) -> CheckoutSession:
        """Handle /create-checkout-session endpoint."""
        try:
            return await self.service.create_checkout_session(req)
        except DPStoreError as e:
            raise HTTPException(e.status_code, str(e))

    async def webhook(self, request: Request) -> dict[str, Any]:
        """Handle /webhook endpoint; the raw body is needed for verification."""
        payload = await request.body()
        signature = request.headers.get("stripe-signature", "")
        try:
            return await self.service.webhook(payload, signature)
        except DPStoreError as e:
            raise HTTPException(e.status_code, str(e))

    async def lookup(self, serial: str) -> LicenseView:
        """Handle /licenses/{serial} endpoint."""
        try:
            return self.service.lookup(serial)
        except DPStoreError as e:
            raise HTTPException(e.status_code, str(e))
