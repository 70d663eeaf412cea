import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from .errors import ExtractionError
from .schema import ExtractedProduct

logger = logging.getLogger(__name__)

T = TypeVar("T")
Strategy = Tuple[str, Callable[[BeautifulSoup], Optional[T]]]

DESCRIPTION_SELECTORS = (
    "p.description",
    ".product-description",
    "#description",
    "div[itemprop='description']",
    ".summary",
    "article p:first-of-type",
)
PRODUCT_IMAGE_SELECTOR = "img.product-image, div.product-gallery img, .product img, [itemprop='image']"
PRODUCT_IMAGE_ATTRS = ("src", "data-src", "data-lazy-src")
FALLBACK_IMAGE_ATTRS = ("src", "data-src")
IMAGE_BLOCKLIST = ("icon", "logo")
MIN_IMAGE_SIDE = 100
PRICE_SELECTORS = (
    "[itemprop='price']",
    ".price",
    ".product-price",
    "#price",
    ".offer-price",
    "span.amount",
)
PRICE_RE = re.compile(r"\$\s?[0-9]+(\.[0-9]{2})?")
SPEC_TABLE_SELECTOR = "table.specifications, table.product-specs, .product-details table"
SPEC_DL_SELECTOR = "dl.product-details, .specifications dl"


def _text(node) -> str:
    return node.get_text(" ", strip=True) if node is not None else ""


def first_match(strategies: Sequence[Strategy], soup: BeautifulSoup, field: str = ""):
    """Run strategies in order; the first non-empty result wins, else None."""
    for name, fn in strategies:
        value = fn(soup)
        if value:
            logger.debug("%s: matched by %s", field or "field", name)
            return value
    return None


def resolve_url(url: str, base_url: str) -> str:
    """
    Absolute form of a possibly relative `url` found on the page at `base_url`.
    Anything that does not resolve comes back unchanged.
    """
    url = url.strip()
    try:
        base = urlsplit(base_url)
        if url.startswith("//"):
            return f"{base.scheme}:{url}"
        if url.startswith("/"):
            return f"{base.scheme}://{base.netloc}{url}"
        if not url.startswith("http"):
            return urljoin(base_url, url)
        return url
    except ValueError:
        return url


# --------------------------------------------------------------------------- #
# Title
# --------------------------------------------------------------------------- #
def _title_tag(soup):
    return _text(soup.find("title"))


def _first_h1(soup):
    return _text(soup.find("h1"))


TITLE_STRATEGIES = (
    ("title", _title_tag),
    ("h1", _first_h1),
)


# --------------------------------------------------------------------------- #
# Description
# --------------------------------------------------------------------------- #
def _meta_content(selector):
    def strategy(soup):
        node = soup.select_one(selector)
        return (node.get("content") or "").strip() if node else ""
    return strategy


def _selector_text(selector):
    def strategy(soup):
        return _text(soup.select_one(selector))
    return strategy


def _reasonable_paragraph(soup):
    # skip boilerplate that is too short and walls of text that are too long
    for p in soup.find_all("p"):
        text = _text(p)
        if 50 < len(text) < 1000:
            return text
    return ""


DESCRIPTION_STRATEGIES = (
    ("meta:description", _meta_content("meta[name='description']")),
    ("meta:og:description", _meta_content("meta[property='og:description']")),
    *((sel, _selector_text(sel)) for sel in DESCRIPTION_SELECTORS),
    ("paragraph", _reasonable_paragraph),
)


# --------------------------------------------------------------------------- #
# Images
# --------------------------------------------------------------------------- #
def _image_src(img: Tag, attrs) -> Optional[str]:
    for attr in attrs:
        v = img.get(attr)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def _dimension(value) -> Optional[int]:
    # "300", "300px" -> 300; missing or empty -> 0; "auto" and other junk -> None
    if value is None or not str(value).strip():
        return 0
    m = re.match(r"\s*(\d+)", str(value))
    return int(m.group(1)) if m else None


def _is_blocked(url: str) -> bool:
    lower = url.lower()
    return any(bad in lower for bad in IMAGE_BLOCKLIST)


def _product_images(soup, base_url) -> List[str]:
    found = {}
    for img in soup.select(PRODUCT_IMAGE_SELECTOR):
        src = _image_src(img, PRODUCT_IMAGE_ATTRS)
        if src:
            found[resolve_url(src, base_url)] = None
    return list(found)


def _large_page_images(soup, base_url) -> List[str]:
    found = {}
    for img in soup.find_all("img"):
        src = _image_src(img, FALLBACK_IMAGE_ATTRS)
        if not src:
            continue
        url = resolve_url(src, base_url)
        if _is_blocked(src) or _is_blocked(url):
            continue
        w = _dimension(img.get("width"))
        h = _dimension(img.get("height"))
        if w is None or h is None:
            continue
        # product photos are big or unsized; UI chrome is small
        if (w == 0 and h == 0) or (w > MIN_IMAGE_SIDE and h > MIN_IMAGE_SIDE):
            found[url] = None
    return list(found)


def image_strategies(base_url: str):
    return (
        ("product-images", lambda soup: _product_images(soup, base_url)),
        ("page-images", lambda soup: _large_page_images(soup, base_url)),
    )


# --------------------------------------------------------------------------- #
# Price
# --------------------------------------------------------------------------- #
def _price_from(selector):
    def strategy(soup):
        node = soup.select_one(selector)
        if node is None:
            return None
        # machine-readable value beats the visible text
        content = (node.get("content") or "").strip()
        return content or _text(node) or None
    return strategy


def _price_in_text(soup):
    body = soup.body or soup
    m = PRICE_RE.search(body.get_text())
    return m.group(0) if m else None


PRICE_STRATEGIES = (
    *((sel, _price_from(sel)) for sel in PRICE_SELECTORS),
    ("dollar-regex", _price_in_text),
)


# --------------------------------------------------------------------------- #
# Details
# --------------------------------------------------------------------------- #
def _table_pairs(soup) -> Dict[str, str]:
    out = {}
    for table in soup.select(SPEC_TABLE_SELECTOR):
        for row in table.find_all("tr"):
            cells = row.find_all(["th", "td"], recursive=False)
            if not cells:
                continue
            headers = [c for c in cells if c.name == "th"]
            data = [c for c in cells if c.name == "td"]
            key = _text(headers[0] if headers else cells[0])
            value = _text(data[-1]) if data else ""
            if key and value:
                out[key] = value
    return out


def _definition_pairs(soup) -> Dict[str, str]:
    out = {}
    for dl in soup.select(SPEC_DL_SELECTOR):
        for dt in dl.find_all("dt"):
            dd = dt.find_next_sibling()
            if dd is None or dd.name != "dd":
                continue
            key, value = _text(dt), _text(dd)
            if key and value:
                out[key] = value
    return out


def extract_details(soup) -> Dict[str, str]:
    # tables first, definition lists second; repeated keys: last one wins
    details = _table_pairs(soup)
    details.update(_definition_pairs(soup))
    return details


# --------------------------------------------------------------------------- #
# Entry point
# --------------------------------------------------------------------------- #
def parse_html(html) -> BeautifulSoup:
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    if not isinstance(html, str):
        raise ExtractionError(f"Expected HTML text, got {type(html).__name__}")
    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception as exc:
        raise ExtractionError(f"Could not parse HTML: {exc}") from exc
    return soup


def extract_product(html, source_url: str) -> ExtractedProduct:
    """
    Best-effort product data from a fetched page. A field no strategy can fill
    is left empty; only a document that is not HTML at all raises.
    """
    try:
        soup = parse_html(html)
    except ExtractionError as exc:
        exc.url = source_url
        raise

    return ExtractedProduct(
        title=first_match(TITLE_STRATEGIES, soup, "title") or "",
        description=first_match(DESCRIPTION_STRATEGIES, soup, "description") or "",
        images=first_match(image_strategies(source_url), soup, "images") or [],
        price=first_match(PRICE_STRATEGIES, soup, "price"),
        details=extract_details(soup),
    )
