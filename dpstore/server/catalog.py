"""
Product catalog: base prices, option surcharges and add-ons per product family.

Amounts are integers in minor currency units (cents).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path  # noqa: TC003
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dpstore.common.exceptions import InvalidProductError
from dpstore.server.persistence import FIXED_COLUMNS

logger = logging.getLogger(__name__)

Amount = Annotated[int, Field(strict=True, ge=0)]


class ProductEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    base_price: Amount
    family: str | None = None
    feature: str | None = None  # Feature identifier unlocked by software items


class ProductFamily(BaseModel):
    model_config = ConfigDict(frozen=True)

    options: dict[str, dict[str, Amount]] = Field(default_factory=dict)
    addons: dict[str, Amount] = Field(default_factory=dict)


class Catalog(BaseModel):
    """Immutable price list loaded once at start-up."""

    model_config = ConfigDict(frozen=True)

    products: dict[str, ProductEntry]
    families: dict[str, ProductFamily] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_entries(self) -> Catalog:
        for product_id, entry in self.products.items():
            if entry.family is not None and entry.family not in self.families:
                msg = f"Product {product_id} references unknown family {entry.family}"
                raise ValueError(msg)
            if entry.feature is not None and entry.feature.lower() in FIXED_COLUMNS:
                msg = f"Product {product_id} uses reserved feature name {entry.feature}"
                raise ValueError(msg)
        return self

    def product(self, product_id: str) -> ProductEntry:
        """Return the catalog entry or raise InvalidProductError."""
        try:
            return self.products[product_id]
        except KeyError:
            raise InvalidProductError(product_id) from None

    def base_price(self, product_id: str) -> int:
        return self.product(product_id).base_price

    def option_surcharge(self, family: str | None, category: str, value: str) -> int:
        """Surcharge for an option value; unknown categories or values cost 0."""
        if family is None or family not in self.families:
            return 0
        return self.families[family].options.get(category, {}).get(value, 0)

    def addon_surcharge(self, family: str | None, name: str) -> int:
        """Surcharge for a boolean add-on; unknown add-ons cost 0."""
        if family is None or family not in self.families:
            return 0
        return self.families[family].addons.get(name, 0)

    @property
    def features(self) -> list[str]:
        """Feature identifiers unlocked by catalog items, sorted."""
        return sorted(
            {entry.feature for entry in self.products.values() if entry.feature}
        )

    @classmethod
    def from_file(cls, file_path: Path) -> Catalog:
        """Load and validate a catalog from a JSON file."""
        with file_path.open(encoding="utf-8") as f:
            data: dict[str, Any] = json.load(f)
        catalog = cls.model_validate(data)
        logger.info(
            "Loaded catalog from %s with %d products", file_path, len(catalog.products)
        )
        return catalog


_CARE = {"none": 0, "basic": 29000, "plus": 49000}

DEFAULT_CATALOG_DATA: dict[str, Any] = {
    "products": {
        "dp-mini-base": {
            "name": "DP Mini - Custom Config",
            "base_price": 299000,
            "family": "dp-mini",
        },
        "dp-pro-base": {
            "name": "DP Pro - Custom Config",
            "base_price": 899000,
            "family": "dp-pro",
        },
        "feature-parallax": {
            "name": "Parallax Correction",
            "base_price": 49000,
            "feature": "parallax",
        },
        "feature-stereo3d": {
            "name": "Stereo 3D View",
            "base_price": 79000,
            "feature": "stereo3d",
        },
        "feature-recording": {
            "name": "Video Recording",
            "base_price": 29000,
            "feature": "recording",
        },
        "feature-measurement": {
            "name": "On-screen Measurement",
            "base_price": 39000,
            "feature": "measurement",
        },
    },
    "families": {
        "dp-mini": {
            "options": {
                "objectives": {"50mm": 0, "60mm": 18000, "75mm": 35000},
                "eyepieces": {"screen": 0, "hd": 29000, "4k": 58000},
                "mounting": {"handle": 0, "arm": 22000},
                "care": _CARE,
            },
        },
        "dp-pro": {
            "options": {
                "stabilization": {"3axis": 0, "enhanced": 45000},
                "arm": {"standard": 0, "extended": 68000},
                "ai": {"basic": 0, "advanced": 59000},
                "care": _CARE,
            },
            # Cumulative toggles, not mutually exclusive choices
            "addons": {"joystick": 28000, "footpedal": 19000},
        },
    },
}

DEFAULT_CATALOG = Catalog.model_validate(DEFAULT_CATALOG_DATA)


def load_catalog(file_path: Path | None = None) -> Catalog:
    """Return the catalog at file_path, or the built-in one when not given."""
    if file_path is None:
        return DEFAULT_CATALOG
    return Catalog.from_file(file_path)
