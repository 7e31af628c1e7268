"""Catalog port — how checkout prices cart lines.

The product catalog itself lives outside this service. Checkout only needs
the current price and sellability of a variant, and never trusts a price
sent by the browser.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class VariantQuote:
    """Current catalog data for one purchasable variant."""

    product_id: str
    variant_id: str
    title: str
    unit_price_cents: int
    sellable: bool = True


class CatalogPort(ABC):
    @abstractmethod
    def resolve_variant(self, product_id: str, variant_id: str) -> VariantQuote | None:
        """Return the variant's current quote, or None when it does not exist."""
        ...
