from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Intent(str, Enum):
    AUTH_REQUIRED = "auth_required"
    PLACE_ORDER = "place_order"
    CARD_SELECTED = "card_selected"
    ADDRESS_SELECTED = "address_selected"
    ADD_TO_CART_POSITION = "add_to_cart_position"
    ADD_TO_CART_RATING = "add_to_cart_rating"
    ADD_TO_CART_NAME = "add_to_cart_name"
    ADD_TO_CART_CATEGORY = "add_to_cart_category"
    ADD_TO_CART_SIZE = "add_to_cart_size"
    ADD_TO_CART_COLOR = "add_to_cart_color"
    ADD_TO_CART_GENERIC = "add_to_cart_generic"
    ADD_TO_CART_ERROR = "add_to_cart_error"
    GOTO_CHECKOUT = "goto_checkout"
    VIEW_CART = "view_cart"
    GO_HOME = "go_home"
    BROWSE_PRODUCTS = "browse_products"
    HELP = "help"
    GREETING = "greeting"
    UNKNOWN = "unknown"
    ERROR = "error"

    @classmethod
    def parse(cls, value: str) -> Optional["Intent"]:
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def adds_to_cart(self) -> bool:
        return self in ADD_TO_CART_RESOLVABLE


ADD_TO_CART_RESOLVABLE = frozenset(
    {
        Intent.ADD_TO_CART_POSITION,
        Intent.ADD_TO_CART_RATING,
        Intent.ADD_TO_CART_NAME,
        Intent.ADD_TO_CART_CATEGORY,
        Intent.ADD_TO_CART_SIZE,
        Intent.ADD_TO_CART_COLOR,
    }
)


@dataclass
class IntentResult:
    intent: Intent
    response: str
    params: Dict[str, Any] = field(default_factory=dict)

    def key(self) -> tuple:
        """(intent, params) pair used to compare classifier outputs."""
        return self.intent, dict(self.params)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "success": True,
            "intent": self.intent.value,
            "response": self.response,
            "data": dict(self.params),
        }
