"""
Server-side pricing of cart line items.
"""

from __future__ import annotations

from typing import Iterable

from dpstore.common.models import LineItem, PricedLine, Quote

from .catalog import Catalog


class PricingEngine:
    """Computes trusted integer amounts from the catalog.

    Stateless apart from the immutable catalog, so a single instance is safe to
    share between concurrent requests.
    """

    def __init__(self, catalog: Catalog, currency: str = "eur"):
        self.catalog = catalog
        self.currency = currency

    def compute_price(self, item: LineItem) -> int:
        """Return base + option surcharges + enabled add-ons for one item.

        Raises InvalidProductError for identifiers missing from the catalog.
        Unknown option categories, option values and add-ons add nothing.
        """
        entry = self.catalog.product(item.id)
        total = entry.base_price
        for category, value in item.options.items():
            total += self.catalog.option_surcharge(entry.family, category, value)
        for name, enabled in item.addons.items():
            if enabled:
                total += self.catalog.addon_surcharge(entry.family, name)
        return total

    def compute_total(self, items: Iterable[LineItem]) -> int:
        """Sum of per-item amounts, no discounts or taxes."""
        return sum(self.compute_price(item) for item in items)

    def quote(self, items: Iterable[LineItem]) -> Quote:
        """Price every item; fails on the first unknown product."""
        lines = []
        for item in items:
            entry = self.catalog.product(item.id)
            lines.append(
                PricedLine(
                    id=item.id,
                    name=entry.name,
                    amount=self.compute_price(item),
                    feature=entry.feature,
                )
            )
        return Quote(
            lines=lines,
            total=sum(line.amount for line in lines),
            currency=self.currency,
        )
