import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from voiceshop.session import SessionContext


PRODUCTS = [
    {"id": "p1", "name": "Air Runner Sneakers", "price": 89.99, "rating": 4.5, "category": "shoes",
     "sizes": ["8", "9", "10"], "colors": ["White", "Black"], "voice_keywords": ["sneakers", "runners"]},
    {"id": "p2", "name": "Classic Cotton Shirt", "price": 29.5, "rating": 4.8, "category": "clothing",
     "sizes": ["S", "M", "L"], "colors": ["Navy Blue"], "keywords": ["shirt"]},
    {"id": "p3", "name": "Nova Smartphone", "price": 699.0, "rating": 4.8, "category": "electronics",
     "sizes": [], "colors": ["Silver"], "keywords": ["phone"]},
    {"id": "p4", "name": "Yoga Mat", "price": 25.0, "rating": 3.9, "category": "fitness",
     "sizes": [], "colors": ["Red", "Purple"], "keywords": ["mat", "yoga"]},
]

ADDRESSES = [{"id": "addr-home", "name": "Home"}, {"id": "addr-work", "name": "Work"}]
CARDS = [
    {"id": "card-visa", "name": "Visa", "last_four": "4242"},
    {"id": "card-mc", "name": "Mastercard", "last_four": "5555"},
]


def build_context(products=None, page="products", on_checkout=False, with_options=False):
    context = SessionContext()
    context.set_products(PRODUCTS if products is None else products)
    context.set_page(page, on_checkout)
    if with_options:
        context.set_saved_options(ADDRESSES, CARDS)
    return context


@pytest.fixture
def context():
    return build_context()


@pytest.fixture
def empty_context():
    return build_context(products=[], page="home")


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b"", text=""):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """requests.Session stand-in: records calls, replies from a callable or a fixed response"""

    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.reply, Exception):
            raise self.reply
        if callable(self.reply):
            return self.reply(url, **kwargs)
        return self.reply
