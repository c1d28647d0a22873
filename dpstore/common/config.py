"""
Configuration settings for the store backend.
"""

from __future__ import annotations

import os
from pathlib import Path

from dpstore.common.logging_utils import parse_log_level


class Config:
    """Central configuration class for all system settings."""

    def __init__(self) -> None:
        # Server settings
        self.SERVER_HOST: str = os.getenv("DPSTORE_SERVER_HOST", "127.0.0.1")
        self.SERVER_PORT: int = int(os.getenv("DPSTORE_SERVER_PORT", "4242"))

        # Payment provider
        self.STRIPE_SECRET_KEY: str | None = os.getenv("STRIPE_SECRET_KEY")
        self.STRIPE_WEBHOOK_SECRET: str | None = os.getenv("STRIPE_WEBHOOK_SECRET")
        self.CURRENCY: str = os.getenv("DPSTORE_CURRENCY", "eur")
        self.SUCCESS_URL: str = os.getenv(
            "DPSTORE_SUCCESS_URL",
            "https://www.dpbiotech.com/success.html?session_id={CHECKOUT_SESSION_ID}",
        )
        self.CANCEL_URL: str = os.getenv(
            "DPSTORE_CANCEL_URL", "https://www.dpbiotech.com/cancel.html"
        )
        self.MAX_DESCRIPTION_LEN: int = 500  # Provider limit on line descriptions

        # File paths
        self.BASE_DIR: Path = Path(__file__).parent.parent
        self.DATA_DIR: Path = Path(
            os.getenv("DPSTORE_DATA_DIR", str(self.BASE_DIR / "data"))
        )
        self.LICENSE_FILE_PATH: Path = Path(
            os.getenv("DPSTORE_LICENSE_FILE", str(self.DATA_DIR / "licenses.csv"))
        )
        catalog_file = os.getenv("DPSTORE_CATALOG_FILE")
        self.CATALOG_FILE_PATH: Path | None = Path(catalog_file) if catalog_file else None
        static_dir = os.getenv("DPSTORE_STATIC_DIR")
        self.STATIC_DIR: Path | None = Path(static_dir) if static_dir else None

        # License policy
        self.LICENSE_TERM_YEARS: int = 1

        # Logging
        self.LOG_LEVEL: int = parse_log_level(os.getenv("LOG_LEVEL"))
