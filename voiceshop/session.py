"""
Session context - what the user is currently looking at.

The host application replaces this state whenever the visible page or
product listing changes. Ordinal references ("the second one") are resolved
against ``SessionContext.products`` in display order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

REQUEST_PRODUCT_LIMIT = 10


class Page(str, Enum):
    HOME = "home"
    PRODUCTS = "products"
    PRODUCT_DETAIL = "product_detail"
    CART = "cart"
    CHECKOUT = "checkout"
    ORDERS = "orders"
    PROFILE = "profile"
    SETTINGS = "settings"
    DEALS = "deals"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Union[str, "Page", None]) -> "Page":
        if isinstance(value, Page):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


def _string_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


@dataclass(frozen=True)
class ProductSummary:
    """The projection of a catalog product the assistant relies on."""

    id: str
    name: str
    price: float = 0.0
    rating: float = 0.0
    category: str = ""
    sizes: List[str] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductSummary":
        keywords = data.get("keywords")
        if keywords is None:
            keywords = data.get("voice_keywords")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            price=float(data.get("price") or 0.0),
            rating=float(data.get("rating") or 0.0),
            category=str(data.get("category") or ""),
            sizes=_string_list(data.get("sizes")),
            colors=_string_list(data.get("colors")),
            keywords=_string_list(keywords),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "rating": self.rating,
            "category": self.category,
            "sizes": list(self.sizes),
            "colors": list(self.colors),
            "keywords": list(self.keywords),
        }


@dataclass(frozen=True)
class SavedOption:
    """A saved address or payment card shown at checkout."""

    id: str
    name: str
    last_four: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedOption":
        last_four = data.get("last_four")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            last_four=str(last_four) if last_four is not None else None,
        )


def _as_products(items: Iterable[Any]) -> List[ProductSummary]:
    return [item if isinstance(item, ProductSummary) else ProductSummary.from_dict(item) for item in items]


def _as_options(items: Iterable[Any]) -> List[SavedOption]:
    return [item if isinstance(item, SavedOption) else SavedOption.from_dict(item) for item in items]


@dataclass
class SessionContext:
    products: List[ProductSummary] = field(default_factory=list)
    category: str = ""
    search_query: str = ""
    page: Page = Page.HOME
    on_checkout: bool = False
    addresses: List[SavedOption] = field(default_factory=list)
    cards: List[SavedOption] = field(default_factory=list)

    def set_products(self, products: Iterable[Any], category: str = "", search_query: str = "") -> None:
        self.products = _as_products(products or [])
        self.category = category or ""
        self.search_query = search_query or ""
        logger.debug(
            "Context products updated: count=%d category=%r query=%r first=%s",
            len(self.products),
            self.category,
            self.search_query,
            [p.name for p in self.products[:3]],
        )

    def set_page(self, page: Union[str, Page], on_checkout: bool = False) -> None:
        self.page = Page.parse(page)
        self.on_checkout = bool(on_checkout)
        logger.debug("Context page updated: page=%s on_checkout=%s", self.page.value, self.on_checkout)

    def set_saved_options(self, addresses: Iterable[Any] = (), cards: Iterable[Any] = ()) -> None:
        self.addresses = _as_options(addresses or [])
        self.cards = _as_options(cards or [])

    def to_request_context(self, limit: int = REQUEST_PRODUCT_LIMIT) -> Dict[str, Any]:
        """Context object sent along with a remote classification request."""
        return {
            "currentPage": self.page.value,
            "productsAvailable": len(self.products),
            "hasCart": True,
            "onCheckout": self.on_checkout,
            "currentProducts": [p.to_dict() for p in self.products[:limit]],
        }

    @classmethod
    def from_request_context(cls, data: Optional[Dict[str, Any]]) -> "SessionContext":
        data = data or {}
        context = cls()
        context.set_products(data.get("currentProducts") or [])
        context.set_page(data.get("currentPage") or Page.HOME, bool(data.get("onCheckout")))
        return context
