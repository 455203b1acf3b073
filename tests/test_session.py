from conftest import PRODUCTS, build_context
from voiceshop.session import Page, ProductSummary, SessionContext


def test_set_products_converts_dicts_and_keeps_order():
    context = SessionContext()
    context.set_products(PRODUCTS, category="shoes", search_query="runner")
    assert [p.id for p in context.products] == ["p1", "p2", "p3", "p4"]
    assert context.products[0].keywords == ["sneakers", "runners"]
    assert context.category == "shoes"
    assert context.search_query == "runner"


def test_set_products_replaces_state():
    context = build_context()
    context.set_products([])
    assert context.products == []
    assert context.category == ""


def test_set_page_parses_names():
    context = SessionContext()
    context.set_page("Checkout", on_checkout=True)
    assert context.page == Page.CHECKOUT
    assert context.on_checkout is True

    context.set_page("wishlist")
    assert context.page == Page.UNKNOWN
    assert context.on_checkout is False


def test_request_context_is_bounded():
    products = [dict(PRODUCTS[0], id=f"p{i}") for i in range(12)]
    context = build_context(products=products, page="products")
    request = context.to_request_context()
    assert request["productsAvailable"] == 12
    assert request["currentPage"] == "products"
    assert request["onCheckout"] is False
    assert len(request["currentProducts"]) == 10
    assert request["currentProducts"][0]["keywords"] == ["sneakers", "runners"]


def test_request_context_round_trip():
    original = build_context(page="cart")
    restored = SessionContext.from_request_context(original.to_request_context())
    assert restored.products == original.products
    assert restored.page == Page.CART
    assert SessionContext.from_request_context(None).products == []


def test_product_summary_defaults():
    product = ProductSummary.from_dict({"id": 7, "name": "Mug", "price": None, "colors": "white"})
    assert product.id == "7"
    assert product.price == 0.0
    assert product.colors == ["white"]
    assert product.sizes == []
