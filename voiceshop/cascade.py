"""Ordered intent rule table shared by every classifier.

The cascade is a list of :class:`Rule` entries evaluated top to bottom; the
first rule whose predicate accepts the utterance produces the result. Earlier
rules win because natural utterances overlap ("cart" is both an add-to-cart
and a cart-viewing word). Both the in-process classifier and the remote
classification service evaluate this same table.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from . import vocabulary as vocab
from .intents import Intent, IntentResult
from .session import Page, SessionContext

logger = logging.getLogger(__name__)

ERROR_RESPONSE = "I encountered an issue processing that. Could you try again?"


@dataclass
class Utterance:
    """A normalized utterance together with everything the rules may read."""

    text: str
    context: SessionContext
    authenticated: bool
    rng: random.Random = field(default_factory=random.Random)

    def pick(self, options: List[str]) -> str:
        return self.rng.choice(options)


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[Utterance], bool]
    handler: Callable[[Utterance], IntentResult]


def contextual_help(context: SessionContext) -> str:
    if context.on_checkout:
        return (
            "Since you're on the checkout page, try saying \"Use details 1\" for address, "
            "\"Use card 1\" for payment, or \"Place order\" to complete your purchase!"
        )
    if context.page == Page.CART:
        return (
            "You're viewing your cart! Try \"Checkout\", \"Add more products\", "
            "or \"Show me products\" to keep going."
        )
    return (
        "You can say things like \"Show me sneakers\", \"Add the first product\", "
        "\"Go to my cart\", \"Checkout\", or ask me to \"Show products\"!"
    )


def contextual_suggestions(context: SessionContext) -> str:
    if context.on_checkout:
        return "Try \"Use details 1\", \"Use card 1\", or \"Place order\"."
    if context.page == Page.CART:
        return "Try \"Checkout\", \"Add more products\", or \"Show me products\"."
    return "Try \"Show me products\", \"Add the first product\", \"Go to my cart\", or \"Checkout\"."


# 1. Auth gate

def _needs_auth(u: Utterance) -> bool:
    return not u.authenticated and vocab.SHOPPING_VOCABULARY.search(u.text) is not None


def _handle_auth_required(u: Utterance) -> IntentResult:
    return IntentResult(
        Intent.AUTH_REQUIRED,
        "I'd love to help you shop! Please sign in first so I can save your items and process orders.",
    )


# 2. Place order

def _is_place_order(u: Utterance) -> bool:
    return vocab.has_phrase(u.text, vocab.PLACE_ORDER_PHRASES) or bool(vocab.PROCEED_WITH_ORDER.search(u.text))


def _handle_place_order(u: Utterance) -> IntentResult:
    response = u.pick(
        [
            "Perfect! I'm processing your order right now. Thank you for choosing us!",
            "Excellent! Your order is being submitted. You should receive confirmation shortly!",
            "Fantastic! Processing your payment and order details now!",
            "Great choice! I'm completing your order - almost done!",
        ]
    )
    return IntentResult(Intent.PLACE_ORDER, response)


# 3. Payment card

def _is_payment(u: Utterance) -> bool:
    return (
        vocab.has_phrase(u.text, vocab.CARD_PHRASES)
        or bool(vocab.CARD_REFERENCE.search(u.text))
        or bool(vocab.CARD_VERB.search(u.text))
    )


def _handle_payment(u: Utterance) -> IntentResult:
    card = vocab.extract_identifier(u.text, vocab.CARD_WORDS)
    response = u.pick(
        [
            f"Perfect! I've selected card {card} for payment. You're all set to complete your order!",
            f"Excellent choice! Card {card} is now selected. Ready to place your order!",
            f"Great! I've set up card {card} for payment. Everything looks good!",
        ]
    )
    return IntentResult(Intent.CARD_SELECTED, response, {"card_identifier": card})


# 4. Address

def _is_address(u: Utterance) -> bool:
    return (
        vocab.has_phrase(u.text, vocab.ADDRESS_PHRASES)
        or bool(vocab.ADDRESS_REFERENCE.search(u.text))
        or bool(vocab.ADDRESS_VERB.search(u.text))
    )


def _handle_address(u: Utterance) -> IntentResult:
    address = vocab.extract_identifier(u.text, vocab.ADDRESS_WORDS)
    response = u.pick(
        [
            f"Perfect! I've selected address {address} for delivery. Now you can choose your payment method!",
            f"Excellent! Address {address} is set for shipping. Ready for payment selection!",
            f"Great choice! Address {address} is confirmed for delivery. What's your payment preference?",
        ]
    )
    return IntentResult(Intent.ADDRESS_SELECTED, response, {"address_identifier": address})


# 5. Add to cart

def _is_add_to_cart(u: Utterance) -> bool:
    if vocab.has_phrase(u.text, vocab.CART_VIEWING_PHRASES):
        return False
    return (
        vocab.PRODUCT_NAME_COMMAND.search(u.text) is not None
        or vocab.has_phrase(u.text, vocab.ADD_PHRASES)
        or vocab.ADD_WORD.search(u.text) is not None
    )


_POSITION_LABELS = {0: "first", 1: "second", 2: "third", 3: "fourth", 4: "fifth", -1: "last"}


def _position_result(u: Utterance, position: int) -> IntentResult:
    label = _POSITION_LABELS.get(position, f"number {position + 1}")
    response = u.pick(
        [
            f"Perfect! I'll add the {label} product to your cart right away!",
            f"Great choice! Adding the {label} item to your cart now!",
            f"Excellent! The {label} product is going into your cart!",
        ]
    )
    return IntentResult(Intent.ADD_TO_CART_POSITION, response, {"position": position})


def _handle_add_to_cart(u: Utterance) -> IntentResult:
    # phrasings like "i'll take the first one" miss the shopping vocabulary
    if not u.authenticated:
        return _handle_auth_required(u)

    text = u.text

    name = vocab.product_name_reference(text)
    if name:
        return IntentResult(
            Intent.ADD_TO_CART_NAME,
            f"I'll add {name} to your cart right away!",
            {"product_name": name},
        )

    position = vocab.ordinal_position(text)
    if position is not None:
        return _position_result(u, position)

    if vocab.SUPERLATIVE.search(text):
        return IntentResult(
            Intent.ADD_TO_CART_RATING,
            "Excellent choice! I'll add the highest-rated product to your cart!",
            {"criteria": "best_rating"},
        )

    category = vocab.category_for(text)
    if category:
        return IntentResult(
            Intent.ADD_TO_CART_CATEGORY,
            f"Great! Adding one of our {category[0]} products to your cart!",
            {"category": category[0]},
        )

    size = vocab.size_for(text)
    if size:
        return IntentResult(
            Intent.ADD_TO_CART_SIZE,
            f"Got it! Adding the first product available in size {size}.",
            {"size": size},
        )

    color = vocab.color_for(text)
    if color:
        return IntentResult(
            Intent.ADD_TO_CART_COLOR,
            f"Nice pick! Adding the first {color} product to your cart.",
            {"color": color},
        )

    if vocab.BARE_ONE.search(text):
        return _position_result(u, 0)

    if not u.context.products:
        response = (
            "I'd be happy to add something to your cart! First, let's browse some products. "
            "Try saying \"Show me products\" or \"Browse electronics\"."
        )
    else:
        response = u.pick(
            [
                "I'd be happy to add something to your cart! Try saying \"Add the first product\" "
                "or \"Add the best rated item\".",
                "Great! Let me help you add an item. Say \"Add the first one\" or tell me which product you'd like!",
                "Absolutely! Just tell me which one - \"first\", \"second\", or describe what you want!",
            ]
        )
    return IntentResult(Intent.ADD_TO_CART_GENERIC, response)


# 6. Checkout navigation

def _is_checkout_navigation(u: Utterance) -> bool:
    return vocab.CHECKOUT_NAVIGATION.search(u.text) is not None


def _handle_checkout(u: Utterance) -> IntentResult:
    response = u.pick(
        [
            "Excellent! Taking you to checkout where you can complete your purchase.",
            "Perfect! Let's head to checkout. You can use voice commands for address and payment!",
            "Great choice! Moving to checkout now. I'll help you through the process!",
        ]
    )
    return IntentResult(Intent.GOTO_CHECKOUT, response)


# 7. Generic navigation

def _is_navigation(u: Utterance) -> bool:
    return (
        vocab.has_phrase(u.text, vocab.HOME_PHRASES)
        or vocab.has_phrase(u.text, vocab.CART_VIEWING_PHRASES)
        or vocab.has_phrase(u.text, vocab.CATALOG_PHRASES)
    )


def _handle_navigation(u: Utterance) -> IntentResult:
    if vocab.has_phrase(u.text, vocab.HOME_PHRASES):
        response = u.pick(
            [
                "Taking you back to the homepage!",
                "Perfect! Returning to the home page.",
                "Sure thing! Let's go back to the main page.",
            ]
        )
        return IntentResult(Intent.GO_HOME, response)

    if vocab.has_phrase(u.text, vocab.CART_VIEWING_PHRASES):
        response = u.pick(
            [
                "Perfect! Let's take a look at what's in your cart.",
                "Great! Opening your cart so you can review your items.",
                "Sure thing! Let me show you your cart contents.",
            ]
        )
        return IntentResult(Intent.VIEW_CART, response)

    response = u.pick(
        [
            "Absolutely! Let me show you our amazing product collection.",
            "Great! Here's our product catalog with lots of great items.",
            "Excellent! Browse through our curated selection of products.",
        ]
    )
    return IntentResult(Intent.BROWSE_PRODUCTS, response, {"category": "", "keywords": []})


# 8. Browse / search

def _is_browse(u: Utterance) -> bool:
    return (
        vocab.has_phrase(u.text, vocab.BROWSE_PHRASES)
        or vocab.category_for(u.text) is not None
        or vocab.BROWSE_OBJECT.search(u.text) is not None
    )


def _handle_browse(u: Utterance) -> IntentResult:
    found = vocab.category_for(u.text)
    category, keywords = found if found else ("", [])
    if category:
        response = u.pick(
            [
                f"Perfect! Here are our {category} products. You can say \"Add the first one\" to add items to your cart!",
                f"Excellent choice! Check out these {category} options. Try \"Add the one with best rating\"!",
                f"Awesome! Here's our {category} collection. Use voice commands like \"Add the second one\" to shop!",
            ]
        )
    else:
        response = u.pick(
            [
                "Perfect! Here's our complete product catalog. Say \"Add the first product\" or \"Show me sneakers\" to get started!",
                "Excellent! Browse through these products. You can add items by saying \"Add the first one\"!",
                "Great! Check out our full collection. Try voice commands like \"Add the best rated one\" to shop!",
            ]
        )
    return IntentResult(Intent.BROWSE_PRODUCTS, response, {"category": category, "keywords": keywords})


# 9. Help

def _is_help(u: Utterance) -> bool:
    return vocab.has_phrase(u.text, vocab.HELP_PHRASES)


def _handle_help(u: Utterance) -> IntentResult:
    return IntentResult(
        Intent.HELP,
        "I'm your voice shopping assistant! I can help you browse products, add items to cart, "
        f"and complete purchases. {contextual_help(u.context)}",
    )


# 10. Greeting

def _is_greeting(u: Utterance) -> bool:
    return vocab.has_phrase(u.text, vocab.GREETING_PHRASES)


def _handle_greeting(u: Utterance) -> IntentResult:
    response = u.pick(
        [
            "Hello! I'm your voice shopping assistant. What can I help you find today?",
            "Hi there! Ready to do some voice shopping? I can show you products, manage your cart, and help with checkout!",
            "Hey! Great to see you! Try saying \"Show me products\" or \"What's in my cart\" to get started!",
        ]
    )
    return IntentResult(Intent.GREETING, response)


# 11. Fallback

def _handle_unknown(u: Utterance) -> IntentResult:
    suggestions = contextual_suggestions(u.context)
    response = u.pick(
        [
            f"I didn't quite catch that. {suggestions}",
            f"Could you try rephrasing that? {suggestions}",
            f"I'm not sure what you meant. {suggestions}",
        ]
    )
    return IntentResult(Intent.UNKNOWN, response)


INTENT_RULES: List[Rule] = [
    Rule("auth_gate", _needs_auth, _handle_auth_required),
    Rule("place_order", _is_place_order, _handle_place_order),
    Rule("payment", _is_payment, _handle_payment),
    Rule("address", _is_address, _handle_address),
    Rule("add_to_cart", _is_add_to_cart, _handle_add_to_cart),
    Rule("checkout", _is_checkout_navigation, _handle_checkout),
    Rule("navigation", _is_navigation, _handle_navigation),
    Rule("browse", _is_browse, _handle_browse),
    Rule("help", _is_help, _handle_help),
    Rule("greeting", _is_greeting, _handle_greeting),
]


def matching_rule(utterance: Utterance, rules: Optional[List[Rule]] = None) -> Optional[Rule]:
    for rule in rules if rules is not None else INTENT_RULES:
        if rule.predicate(utterance):
            return rule
    return None


def classify(
    text: str,
    context: Optional[SessionContext] = None,
    authenticated: bool = False,
    rng: Optional[random.Random] = None,
    rules: Optional[List[Rule]] = None,
) -> IntentResult:
    """Classify one utterance. Never raises: failures become an ``error`` intent."""

    utterance = Utterance(
        text=vocab.normalize(text),
        context=context if context is not None else SessionContext(),
        authenticated=authenticated,
        rng=rng or random.Random(),
    )
    try:
        rule = matching_rule(utterance, rules)
        if rule is None:
            logger.debug("No rule matched %r", utterance.text)
            return _handle_unknown(utterance)
        logger.debug("Rule %s matched %r", rule.name, utterance.text)
        return rule.handler(utterance)
    except Exception:
        logger.exception("Classification failed for %r", utterance.text)
        return IntentResult(Intent.ERROR, ERROR_RESPONSE)
