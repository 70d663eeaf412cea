import pytest
from bs4 import BeautifulSoup

from collector.errors import ExtractionError
from collector.parser_generic import (
    DESCRIPTION_STRATEGIES,
    PRICE_STRATEGIES,
    TITLE_STRATEGIES,
    extract_details,
    extract_product,
    first_match,
    image_strategies,
    resolve_url,
)

BASE = "https://www.cssbuy.com/item-55.html"

PRODUCT_PAGE = """
<html>
<head>
  <title> Canvas Sneaker | CSSBuy </title>
  <meta name="description" content="Low-top canvas sneaker with rubber sole.">
</head>
<body>
  <img src="/static/logo.png">
  <div class="product-gallery">
    <img src="//img.alicdn.com/a.jpg">
    <img data-src="/images/b.jpg">
    <img src="https://img.alicdn.com/a.jpg">
  </div>
  <span class="price" content="129.00">¥129</span>
  <table class="specifications">
    <tr><th>Color</th><td>White</td></tr>
    <tr><td>Size</td><td>42</td></tr>
    <tr><td>Empty</td><td>  </td></tr>
  </table>
  <dl class="product-details">
    <dt>Material</dt><dd>Canvas</dd>
    <dt>Color</dt><dd>Black</dd>
    <dt>Orphan</dt>
  </dl>
</body>
</html>
"""


def soup(html):
    return BeautifulSoup(html, "lxml")


def test_extract_full_page():
    product = extract_product(PRODUCT_PAGE, BASE)
    assert product.title == "Canvas Sneaker | CSSBuy"
    assert product.description == "Low-top canvas sneaker with rubber sole."
    assert product.images == [
        "https://img.alicdn.com/a.jpg",
        "https://www.cssbuy.com/images/b.jpg",
    ]
    assert product.price == "129.00"
    # dl comes after the table, so its Color wins
    assert product.details == {"Color": "Black", "Size": "42", "Material": "Canvas"}
    assert product.scraped_at is not None


def test_bare_document_is_not_an_error():
    product = extract_product("<html><body><div>nothing to see</div></body></html>", BASE)
    assert product.title == ""
    assert product.description == ""
    assert product.images == []
    assert product.price is None
    assert product.details == {}


@pytest.mark.parametrize("html", ["", "   ", "\n\t"])
def test_empty_document_gives_empty_record(html):
    product = extract_product(html, BASE)
    assert product.title == ""
    assert product.images == []
    assert product.price is None
    assert product.details == {}


@pytest.mark.parametrize("html", [None, 42])
def test_non_text_document_raises(html):
    with pytest.raises(ExtractionError) as exc_info:
        extract_product(html, BASE)
    assert exc_info.value.url == BASE


def test_title_falls_back_to_h1():
    s = soup("<html><head><title>  </title></head><body><h1>Hoodie</h1><h1>Other</h1></body></html>")
    assert first_match(TITLE_STRATEGIES, s) == "Hoodie"


def test_description_selector_before_paragraphs():
    s = soup("""
        <p>%s</p>
        <div class="product-description">Soft cotton hoodie.</div>
    """ % ("x" * 80))
    assert first_match(DESCRIPTION_STRATEGIES, s) == "Soft cotton hoodie."


def test_description_paragraph_length_window():
    short = "Too short."
    too_long = "y" * 1000
    good = "A relaxed fit hoodie made from heavyweight brushed fleece cotton."
    s = soup(f"<p>{short}</p><p>{too_long}</p><p>{good}</p>")
    assert first_match(DESCRIPTION_STRATEGIES, s) == good


def test_product_images_prefer_src_then_lazy_attrs():
    s = soup("""
        <img class="product-image" src="/a.jpg" data-src="/ignored.jpg">
        <img class="product-image" data-lazy-src="/c.jpg">
        <img class="product-image">
    """)
    assert first_match(image_strategies(BASE), s) == [
        "https://www.cssbuy.com/a.jpg",
        "https://www.cssbuy.com/c.jpg",
    ]


def test_page_image_fallback_filters_chrome():
    s = soup("""
        <img src="/img/site-logo.png">
        <img src="/img/cart-icon.svg">
        <img src="/img/Logo-big.jpg">
        <img src="/img/thumb.jpg" width="50" height="50">
        <img src="/img/half.jpg" width="300">
        <img src="/img/large.jpg" width="400" height="300px">
        <img src="/img/plain.jpg">
        <img src="/img/plain.jpg">
    """)
    images = first_match(image_strategies(BASE), s)
    assert images == [
        "https://www.cssbuy.com/img/large.jpg",
        "https://www.cssbuy.com/img/plain.jpg",
    ]
    assert not any("icon" in u or "logo" in u.lower() for u in images)


def test_page_image_fallback_rejects_unparseable_sizes():
    s = soup("""
        <img src="/spacer.gif" width="auto" height="auto">
        <img src="/banner.jpg" width="400" height="auto">
        <img src="/empty.jpg" width="" height="">
    """)
    assert first_match(image_strategies(BASE), s) == ["https://www.cssbuy.com/empty.jpg"]


def test_price_prefers_content_attribute():
    s = soup('<span itemprop="price" content="19.99">$19.99 USD</span>')
    assert first_match(PRICE_STRATEGIES, s) == "19.99"


def test_price_uses_text_without_content():
    s = soup('<div class="offer-price"> ¥ 88 </div>')
    assert first_match(PRICE_STRATEGIES, s) == "¥ 88"


def test_price_regex_fallback():
    s = soup("<body><p>Now only $ 45.50 while stocks last, was $60</p></body>")
    assert first_match(PRICE_STRATEGIES, s) == "$ 45.50"


def test_price_other_currency_not_found():
    s = soup("<body><p>Now only €45.50</p></body>")
    assert first_match(PRICE_STRATEGIES, s) is None


def test_details_only_from_specification_containers():
    s = soup("""
        <table><tr><td>Ignored</td><td>table</td></tr></table>
        <div class="product-details"><table><tr><td>Weight</td><td>1kg</td></tr></table></div>
        <div class="specifications"><dl><dt>Origin</dt><dd>Putian</dd></dl></div>
    """)
    assert extract_details(s) == {"Weight": "1kg", "Origin": "Putian"}


def test_definition_needs_adjacent_dd():
    s = soup('<dl class="product-details"><dt>Key</dt><span>x</span><dd>late</dd></dl>')
    assert extract_details(s) == {}


@pytest.mark.parametrize("url,expected", [
    ("//cdn.example.com/a.jpg", "https://cdn.example.com/a.jpg"),
    ("/images/a.jpg", "https://www.cssbuy.com/images/a.jpg"),
    ("images/a.jpg", "https://www.cssbuy.com/images/a.jpg"),
    ("../a.jpg", "https://www.cssbuy.com/a.jpg"),
    ("http://cdn.example.com/a.jpg", "http://cdn.example.com/a.jpg"),
])
def test_resolve_url(url, expected):
    assert resolve_url(url, BASE) == expected


def test_resolve_url_keeps_broken_input():
    assert resolve_url("img/a.jpg", "http://[broken") == "img/a.jpg"
