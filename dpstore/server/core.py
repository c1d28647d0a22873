"""
OOP-based store server using FastAPI.
"""

from __future__ import annotations

import logging
from datetime import date  # noqa: TC003
from pathlib import Path  # noqa: TC003
from typing import Any, Callable

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from dpstore.common import Configurable, setup_logger
from dpstore.common.config import Config
from dpstore.common.interfaces import IPaymentGateway  # noqa: TC001

from .catalog import Catalog, load_catalog
from .license_store import LicenseStore, utc_today
from .payment_gateway import StripeGateway
from .pricing import PricingEngine
from .routes import OrderRoutes
from .services import OrderService

SETTINGS = [
    "server_host",
    "server_port",
    "license_file_path",
    "catalog_file_path",
    "static_dir",
    "stripe_secret_key",
    "stripe_webhook_secret",
    "currency",
    "success_url",
    "cancel_url",
    "license_term_years",
    "log_level",
]


class OrderServer(Configurable):
    """Wires catalog, pricing, license store and payment gateway into an app.

    Every setting defaults to the matching Config attribute and can be
    overridden by keyword.
    """

    def __init__(
        self,
        config: Config | None = None,
        catalog: Catalog | None = None,
        gateway: IPaymentGateway | None = None,
        today: Callable[[], date] = utc_today,
        **overrides: Any,
    ):
        self.config = config or Config()
        unknown = set(overrides) - set(SETTINGS)
        if unknown:
            msg = f"Unknown settings: {', '.join(sorted(unknown))}"
            raise TypeError(msg)
        self.apply_overrides(overrides, self.config, SETTINGS)

        self.logger = logging.getLogger(__name__)
        setup_logger(logging.getLogger("dpstore"), self.log_level)

        self.catalog = catalog or load_catalog(self.catalog_file_path)
        self.pricing = PricingEngine(self.catalog, currency=self.currency)
        self.gateway = gateway or StripeGateway(
            api_key=self.stripe_secret_key,
            webhook_secret=self.stripe_webhook_secret,
            currency=self.currency,
        )
        self.store = LicenseStore.load(
            self.license_file_path,
            known_features=self.catalog.features,
            term_years=self.license_term_years,
            today=today,
        )
        self.service = OrderService(
            config=self.config,
            pricing=self.pricing,
            gateway=self.gateway,
            store=self.store,
            success_url=self.success_url,
            cancel_url=self.cancel_url,
        )

        self.app = FastAPI(title="DP Store")
        OrderRoutes(self.service).setup_routes(self.app)
        self._mount_static(self.static_dir)

        if not self.stripe_webhook_secret:
            self.logger.warning("STRIPE_WEBHOOK_SECRET not set, payment events will be rejected")
        self.logger.info(
            "Store ready on http://%s:%s with %d licenses",
            self.server_host,
            self.server_port,
            len(self.store),
        )

    def _mount_static(self, static_dir: Path | None) -> None:
        """Serve the shop front-end when a static directory is configured."""
        if static_dir is None:
            return
        if not static_dir.is_dir():
            self.logger.warning("Static directory %s does not exist, skipping", static_dir)
            return
        self.app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
