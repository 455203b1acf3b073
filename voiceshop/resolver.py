"""
Entity resolution - turn spoken references into concrete products, addresses and cards.

Resolution always reads the live SessionContext passed in; callers must not
hand in a snapshot taken before classification started.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence

from . import vocabulary as vocab
from .intents import Intent, IntentResult
from .session import ProductSummary, SavedOption, SessionContext

logger = logging.getLogger(__name__)

CatalogLookup = Callable[[str], Iterable[Any]]


def matches_name(product: ProductSummary, query: str) -> bool:
    """Case-insensitive name substring or voice-keyword match."""
    query = query.lower().strip()
    if not query:
        return False
    if query in product.name.lower():
        return True
    for keyword in product.keywords:
        keyword = keyword.lower().strip()
        if keyword and (keyword in query or query in keyword):
            return True
    return False


def best_rated(products: Sequence[ProductSummary]) -> Optional[ProductSummary]:
    """First maximal-rating product in display order."""
    best = None
    for product in products:
        if best is None or product.rating > best.rating:
            best = product
    return best


def at_position(products: Sequence[ProductSummary], position: int) -> Optional[ProductSummary]:
    if not products:
        return None
    index = len(products) - 1 if position == -1 else position
    if 0 <= index < len(products):
        return products[index]
    return None


class EntityResolver:
    """Resolves add-to-cart, address and card references against session state

    Args:
        catalog_lookup: optional callable ``query -> iterable of products``
            (ProductSummary or dict) used once when a name is not found in the
            current working set
    """

    def __init__(self, catalog_lookup: Optional[CatalogLookup] = None):
        self.catalog_lookup = catalog_lookup

    def resolve_product(self, result: IntentResult, context: SessionContext) -> Optional[ProductSummary]:
        products = context.products
        params = result.params
        intent = result.intent

        if intent == Intent.ADD_TO_CART_POSITION:
            return at_position(products, int(params.get("position", 0)))
        if intent == Intent.ADD_TO_CART_RATING:
            return best_rated(products)
        if intent == Intent.ADD_TO_CART_NAME:
            return self.find_by_name(str(params.get("product_name", "")), products)
        if intent == Intent.ADD_TO_CART_CATEGORY:
            category = str(params.get("category", "")).lower()
            return next((p for p in products if p.category.lower() == category), None)
        if intent == Intent.ADD_TO_CART_SIZE:
            size = str(params.get("size", "")).lower()
            return next((p for p in products if any(s.lower() == size for s in p.sizes)), None)
        if intent == Intent.ADD_TO_CART_COLOR:
            color = str(params.get("color", "")).lower()
            return next((p for p in products if any(color in c.lower() for c in p.colors)), None)
        return None

    def find_by_name(self, name: str, products: Sequence[ProductSummary]) -> Optional[ProductSummary]:
        match = next((p for p in products if matches_name(p, name)), None)
        if match is not None or self.catalog_lookup is None:
            return match

        logger.info("'%s' not in current products, searching the catalog", name)
        try:
            candidates = self._as_products(self.catalog_lookup(name))
        except Exception:
            logger.exception("Catalog lookup failed for %r", name)
            return None
        return next((p for p in candidates if matches_name(p, name)), None)

    def resolve_address(self, identifier: str, context: SessionContext) -> Optional[SavedOption]:
        return self._resolve_option(identifier, context.addresses)

    def resolve_card(self, identifier: str, context: SessionContext) -> Optional[SavedOption]:
        return self._resolve_option(identifier, context.cards)

    @staticmethod
    def _resolve_option(identifier: str, options: List[SavedOption]) -> Optional[SavedOption]:
        identifier = str(identifier).strip().lower()
        if not identifier or not options:
            return None

        number = vocab.ordinal_number(identifier)
        if number is not None and 1 <= number <= len(options):
            return options[number - 1]

        for option in options:
            if identifier in option.name.lower() or (option.last_four and option.last_four == identifier):
                return option
        return None

    @staticmethod
    def _as_products(items: Iterable[Any]) -> List[ProductSummary]:
        products = []
        for item in items or []:
            products.append(item if isinstance(item, ProductSummary) else ProductSummary.from_dict(item))
        return products
