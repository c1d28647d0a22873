# DP Store pricing and license fulfillment

from dpstore.server.catalog import DEFAULT_CATALOG, Catalog
from dpstore.server.license_store import LicenseStore
from dpstore.server.pricing import PricingEngine

__all__ = [
    "DEFAULT_CATALOG",
    "Catalog",
    "LicenseStore",
    "PricingEngine",
]
