"""
Phrase lists, lexicons and small text helpers used by the intent cascade.

All matching runs on normalized (lower-cased, whitespace-collapsed) text.
Phrases are matched on word boundaries so that "hi" does not fire inside
"shirt" and "my card" does not fire inside "my cardigan".
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

_WHITESPACE = re.compile(r"\s+")
_CURLY_QUOTES = str.maketrans({"’": "'", "‘": "'", "“": '"', "”": '"'})


def normalize(text: Optional[str]) -> str:
    """Trim, lower-case and collapse whitespace; strip trailing punctuation."""
    if not text:
        return ""
    cleaned = text.translate(_CURLY_QUOTES).strip().lower()
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned.rstrip(".!?,;: ")


def phrase_pattern(phrases: Iterable[str]) -> Pattern[str]:
    """Compile phrases into one word-bounded alternation, longest first."""
    ordered = sorted({p.lower() for p in phrases}, key=len, reverse=True)
    body = "|".join(re.escape(p) for p in ordered)
    return re.compile(rf"(?<![\w'])(?:{body})(?![\w'])")


def has_phrase(text: str, pattern: Pattern[str]) -> bool:
    return pattern.search(text) is not None


# Auth gate

SHOPPING_VOCABULARY = re.compile(
    r"\b(?:add|adds|adding|added|cart|carts|order|orders|ordering|buy|buys|buying)\b"
)

# Place order

PLACE_ORDER_PHRASES = phrase_pattern(
    [
        "place order", "place my order", "place the order",
        "complete order", "complete my order", "complete the order",
        "finish order", "finish my order", "finish the order", "finish my purchase",
        "submit order", "submit my order", "submit the order",
        "confirm order", "confirm my order", "confirm the order",
        "finalize order", "finalize my order", "finalize the order",
        "pay now", "pay for order", "pay for my order", "pay for the order",
        "complete payment", "process payment", "make payment", "proceed with payment",
        "buy now", "purchase now", "buy it now",
        "yes place order", "yes pay now", "yes complete",
    ]
)
PROCEED_WITH_ORDER = re.compile(r"\bproceed\b.*\b(?:payment|order)\b")

# Payment card selection

CARD_PHRASES = phrase_pattern(
    [
        "use card", "select card", "choose card", "pick card",
        "card 1", "card 2", "card 3", "card one", "card two", "card three",
        "first card", "second card", "third card", "my card",
        "use my card", "select my card", "choose my card",
        "payment method", "pay with", "use payment", "select payment",
        "choose payment method", "pick payment method",
        "pay with card", "use credit card", "select credit card",
        "my first card", "my second card", "my default card",
    ]
)
CARD_REFERENCE = re.compile(r"\bcard\s*(?:\d+|one|two|three|first|second|third|default)\b")
CARD_VERB = re.compile(r"\b(?:use|select|choose|pay)\s*(?:with\s*)?(?:card|payment)\b")

CARD_WORDS: Sequence[Tuple[str, str]] = (
    ("one", "1"), ("first", "1"),
    ("two", "2"), ("second", "2"),
    ("three", "3"), ("third", "3"),
    ("default", "1"),
)

# Address selection

ADDRESS_PHRASES = phrase_pattern(
    [
        "use address", "select address", "choose address", "pick address",
        "address 1", "address 2", "address 3", "address one", "address two",
        "first address", "second address", "third address",
        "use details", "select details", "choose details", "pick details",
        "details 1", "details 2", "details 3", "details one", "details two",
        "first details", "second details", "third details",
        "shipping address", "delivery address", "my address",
        "use my address", "select my address", "choose my address",
        "home address", "work address", "default address",
    ]
)
ADDRESS_REFERENCE = re.compile(r"\b(?:address|details)\s*(?:\d+|one|two|three|first|second|third|default)\b")
ADDRESS_VERB = re.compile(r"\b(?:use|select|choose)\s*(?:my\s*)?(?:address|details|shipping)\b")

ADDRESS_WORDS: Sequence[Tuple[str, str]] = tuple(CARD_WORDS) + (("home", "1"), ("work", "2"))

# Add to cart

CART_VIEWING_PHRASES = phrase_pattern(
    [
        "view my cart", "show my cart", "see my cart", "check my cart",
        "go to my cart", "take me to my cart", "navigate to my cart",
        "what's in my cart", "what is in my cart", "whats in my cart",
        "show me my cart", "open my cart", "display my cart",
        "see what's in cart", "see what's in my cart",
        "view cart", "show cart", "open cart", "view the cart", "show the cart",
        "go to cart", "go to the cart",
    ]
)

ADD_PHRASES = phrase_pattern(
    [
        "add to cart", "add to basket", "put in cart", "put in basket",
        "put it in my cart", "put it in the cart", "put it in my basket", "put it in the basket",
        "add item", "add product", "add this", "add that",
        "add first", "add second", "add third", "add last",
        "add the first", "add the second", "add the third", "add the last",
        "first one", "second one", "third one", "last one",
        "buy this", "buy that", "purchase this", "purchase that",
        "get this", "get that", "take this", "take that",
        "i want this", "i want that", "i need this", "i need that",
        "i'll take this", "i'll take that", "i'll buy this",
    ]
)
ADD_WORD = re.compile(r"\badd\b")

PRODUCT_NAME_COMMAND = re.compile(
    r"\b(?:add|buy|purchase|get)\s+(.+?)\s+to\s+(?:my\s+|the\s+)?(?:cart|basket)\b"
)
LEADING_FILLER = re.compile(r"^(?:(?:the|a|an|some|me|please|also)\s+)+")
REFERENCE_ONLY = {"it", "this", "that", "them", "these", "those", "one", "something", "item", "product"}
REFERENCE_NOUNS = {"one", "item", "product", "thing"}

ORDINALS: Sequence[Tuple[Pattern[str], int]] = (
    (re.compile(r"\b(?:first|1st)\b"), 0),
    (re.compile(r"\b(?:second|2nd)\b"), 1),
    (re.compile(r"\b(?:third|3rd)\b"), 2),
    (re.compile(r"\b(?:fourth|4th)\b"), 3),
    (re.compile(r"\b(?:fifth|5th)\b"), 4),
    (re.compile(r"\blast\b"), -1),
)
NUMBERED_ITEM = re.compile(r"\b(?:item|product|number|option)\s+(?:number\s+)?(\d+)\b")
BARE_ONE = re.compile(r"\bone\b")

SUPERLATIVE = re.compile(r"\b(?:best|highest|top[\s-]rated)\b")

COLORS = (
    "red", "blue", "green", "black", "white", "yellow", "pink", "purple",
    "orange", "gray", "grey", "brown", "navy", "silver", "gold", "beige",
)
COLOR_WORD = phrase_pattern(COLORS)

SIZE_EXPLICIT = re.compile(r"\bsize\s+([a-z0-9.]+)\b")
SIZE_WORD = phrase_pattern(["extra small", "extra large", "small", "medium", "large", "xs", "xl", "xxl"])

# Category lexicon: (stems, category, keywords). Stems match as substrings.
CATEGORY_LEXICON: Sequence[Tuple[Tuple[str, ...], str, List[str]]] = (
    (("shoe", "sneaker", "boot"), "shoes", ["shoes", "sneakers"]),
    (("phone", "mobile", "smartphone"), "electronics", ["phone", "electronics"]),
    (("cloth", "shirt", "jean", "dress", "jacket"), "clothing", ["clothing"]),
    (("computer", "laptop", "electronic"), "electronics", ["electronics", "computers"]),
    (("home", "furniture"), "home", ["home", "furniture"]),
    (("fitness", "exercise", "workout"), "fitness", ["fitness", "exercise"]),
    (("accessor",), "accessories", ["accessories"]),
)

# Navigation

CHECKOUT_NAVIGATION = re.compile(
    r"\bcheckout\b|\bcheck out\b(?!\s+(?:the|these|those|some|this|that|your|our|my|what)\b)"
)

HOME_PHRASES = phrase_pattern(
    [
        "go home", "home page", "main page", "homepage", "take me home",
        "back to home", "home screen", "go back home", "back home",
    ]
)
CATALOG_PHRASES = phrase_pattern(
    [
        "show products", "view products", "browse products", "see products",
        "go to products", "take me to products", "show me products",
        "show me the products", "show all products", "all products",
        "product catalog", "product list", "what do you have",
    ]
)

# Browse / search

BROWSE_PHRASES = phrase_pattern(
    [
        "show me", "show", "display", "let me see", "can i see",
        "i want to see", "i'd like to see", "find me", "search for", "looking for",
        "browse", "look at", "check out", "explore", "discover",
        "what do you have", "what's available", "what can i buy",
    ]
)
BROWSE_OBJECT = re.compile(r"\bshow\b.*\b(?:products?|items?)\b")

# Help and greeting

HELP_PHRASES = phrase_pattern(
    [
        "help", "what can you do", "what commands", "how to use",
        "what can i say", "what should i say", "commands",
        "instructions", "guide", "tutorial", "how does this work",
    ]
)
GREETING_PHRASES = phrase_pattern(
    [
        "hello", "hi", "hey", "good morning", "good afternoon", "good evening",
        "what's up", "how are you", "greetings", "howdy",
    ]
)


# Words that carry no option name in a card/address reference
OPTION_FILLER = re.compile(
    r"\b(?:use|select|choose|pick|pay|with|my|the|a|an|please|i|want|to|for|"
    r"card|cards|credit|debit|payment|method|address|addresses|details|shipping|delivery)\b"
)


def extract_identifier(text: str, words: Sequence[Tuple[str, str]], default: str = "1") -> str:
    """Pull an identifier from a card/address reference.

    A literal number wins, then the first ordinal/number word found in
    ``words`` order. Otherwise whatever is left once the filler words are
    removed is returned as a name ("pay with mastercard" -> "mastercard"),
    and ``default`` when nothing is left.
    """
    number = re.search(r"\d+", text)
    if number:
        return number.group(0)
    for word, value in words:
        if re.search(rf"\b{re.escape(word)}\b", text):
            return value
    name = " ".join(OPTION_FILLER.sub(" ", re.sub(r"[^\w\s']", " ", text)).split())
    return name or default


def ordinal_position(text: str) -> Optional[int]:
    """0-based working-set index for an ordinal reference, -1 for "last"."""
    numbered = NUMBERED_ITEM.search(text)
    for pattern, index in ORDINALS:
        if pattern.search(text):
            return index
    if numbered:
        value = int(numbered.group(1))
        if value >= 1:
            return value - 1
    return None


def category_for(text: str) -> Optional[Tuple[str, List[str]]]:
    for stems, category, keywords in CATEGORY_LEXICON:
        if any(stem in text for stem in stems):
            return category, list(keywords)
    return None


def size_for(text: str) -> Optional[str]:
    explicit = SIZE_EXPLICIT.search(text)
    if explicit:
        return explicit.group(1)
    word = SIZE_WORD.search(text)
    return word.group(0) if word else None


def color_for(text: str) -> Optional[str]:
    match = COLOR_WORD.search(text)
    return match.group(0) if match else None


def product_name_reference(text: str) -> Optional[str]:
    """Name phrase from "(add|buy|purchase|get) <name> to cart", if it is a real name.

    Phrases that are themselves positional, superlative, demonstrative or
    attribute references ("the first one", "the best rated item", "a red one")
    are not names.
    """
    match = PRODUCT_NAME_COMMAND.search(text)
    if not match:
        return None
    name = LEADING_FILLER.sub("", match.group(1).strip()).strip()
    if not name or name in REFERENCE_ONLY:
        return None
    if ordinal_position(name) is not None or SUPERLATIVE.search(name):
        return None
    words = name.split()
    if words[-1] in REFERENCE_NOUNS or words[0] in ("this", "that"):
        return None
    return name


ORDINAL_WORDS: Dict[str, int] = {
    "one": 1, "first": 1, "1st": 1,
    "two": 2, "second": 2, "2nd": 2,
    "three": 3, "third": 3, "3rd": 3,
    "four": 4, "fourth": 4, "4th": 4,
    "five": 5, "fifth": 5, "5th": 5,
}


def ordinal_number(word: str) -> Optional[int]:
    """1-based number for a digit string or ordinal/number word."""
    word = word.strip().lower()
    if word.isdigit():
        return int(word)
    return ORDINAL_WORDS.get(word)
