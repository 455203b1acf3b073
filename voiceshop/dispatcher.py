"""
Capability registry and action dispatch.

The host application registers named callbacks while a view is active and
unregisters them on teardown. The dispatcher never assumes a capability is
present: a missing one is logged and skipped.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from .intents import Intent

logger = logging.getLogger(__name__)

Capability = Callable[..., Any]

NAVIGATE_HOME = "navigate_home"
VIEW_CART = "view_cart"
GOTO_CHECKOUT = "goto_checkout"
BROWSE_PRODUCTS = "browse_products"
SELECT_ADDRESS = "select_address"
SELECT_CARD = "select_card"
SUBMIT_ORDER = "submit_order"
ADD_TO_CART = "add_to_cart"

# intent -> (capability name, params keys passed positionally)
INTENT_CAPABILITIES: Dict[Intent, Tuple[str, Tuple[str, ...]]] = {
    Intent.PLACE_ORDER: (SUBMIT_ORDER, ()),
    Intent.CARD_SELECTED: (SELECT_CARD, ("card_identifier",)),
    Intent.ADDRESS_SELECTED: (SELECT_ADDRESS, ("address_identifier",)),
    Intent.GOTO_CHECKOUT: (GOTO_CHECKOUT, ()),
    Intent.VIEW_CART: (VIEW_CART, ()),
    Intent.GO_HOME: (NAVIGATE_HOME, ()),
    Intent.BROWSE_PRODUCTS: (BROWSE_PRODUCTS, ("category",)),
    Intent.ADD_TO_CART_POSITION: (ADD_TO_CART, ("product_id",)),
    Intent.ADD_TO_CART_RATING: (ADD_TO_CART, ("product_id",)),
    Intent.ADD_TO_CART_NAME: (ADD_TO_CART, ("product_id",)),
    Intent.ADD_TO_CART_CATEGORY: (ADD_TO_CART, ("product_id",)),
    Intent.ADD_TO_CART_SIZE: (ADD_TO_CART, ("product_id",)),
    Intent.ADD_TO_CART_COLOR: (ADD_TO_CART, ("product_id",)),
}


class CapabilityRegistry:
    """Named host callbacks the engine may invoke"""

    def __init__(self, capabilities: Optional[Dict[str, Capability]] = None):
        self._capabilities: Dict[str, Capability] = {}
        self._lock = threading.Lock()
        for name, callback in (capabilities or {}).items():
            self.register(name, callback)

    def register(self, name: str, callback: Capability) -> None:
        if not callable(callback):
            raise TypeError(f"Capability {name!r} must be callable")
        with self._lock:
            self._capabilities[name] = callback
        logger.debug("Capability registered: %s", name)

    def unregister(self, name: str) -> None:
        with self._lock:
            removed = self._capabilities.pop(name, None)
        if removed is not None:
            logger.debug("Capability unregistered: %s", name)

    def get(self, name: str) -> Optional[Capability]:
        with self._lock:
            return self._capabilities.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._capabilities)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._capabilities

    def __len__(self) -> int:
        with self._lock:
            return len(self._capabilities)


class ActionDispatcher:
    """Invokes the capability mapped to a classified intent"""

    def __init__(self, registry: CapabilityRegistry):
        self.registry = registry

    def capability_for(self, intent: Intent) -> Optional[str]:
        mapping = INTENT_CAPABILITIES.get(intent)
        return mapping[0] if mapping else None

    def dispatch(self, intent: Intent, params: Optional[Dict[str, Any]] = None) -> bool:
        """
        Run the capability for ``intent``

        Returns:
            True if a capability ran to completion. Intents without an action,
            unregistered capabilities and capabilities that raise all give False.
        """
        mapping = INTENT_CAPABILITIES.get(intent)
        if mapping is None:
            return False

        name, arg_keys = mapping
        callback = self.registry.get(name)
        if callback is None:
            logger.warning("Capability %s is not registered; skipping %s", name, intent.value)
            return False

        params = params or {}
        args = [params.get(key, "") for key in arg_keys]
        try:
            callback(*args)
        except Exception:
            logger.exception("Capability %s failed for %s", name, intent.value)
            return False

        logger.info("Capability %s invoked for %s", name, intent.value)
        return True
