"""In-memory catalog for development and testing."""

from ordering.catalog.port import CatalogPort, VariantQuote


class InMemoryCatalog(CatalogPort):
    def __init__(self, quotes: list[VariantQuote] | None = None) -> None:
        self._quotes: dict[tuple[str, str], VariantQuote] = {}
        for quote in quotes or []:
            self.add(quote)

    def add(self, quote: VariantQuote) -> None:
        self._quotes[(quote.product_id, quote.variant_id)] = quote

    def add_variant(
        self,
        product_id: str,
        variant_id: str,
        title: str,
        unit_price_cents: int,
        sellable: bool = True,
    ) -> VariantQuote:
        quote = VariantQuote(
            product_id=product_id,
            variant_id=variant_id,
            title=title,
            unit_price_cents=unit_price_cents,
            sellable=sellable,
        )
        self.add(quote)
        return quote

    def resolve_variant(self, product_id: str, variant_id: str) -> VariantQuote | None:
        return self._quotes.get((str(product_id), str(variant_id)))

    def reset(self) -> None:
        self._quotes.clear()
