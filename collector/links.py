"""
Link conversion: map marketplace / agent product links onto CSSBuy item pages.

Every supported link carries a numeric product id somewhere in it. Pull the id
out, drop it into the CSSBuy item template and that page is what gets scraped.
"""
import re
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

from .schema import ConversionResult

TARGET_DOMAIN = "www.cssbuy.com"
TARGET_TEMPLATE = "https://" + TARGET_DOMAIN + "/item-{id}.html"

SUPPORTED_DOMAINS = frozenset({
    # source marketplace
    "taobao.com",
    # target
    "cssbuy.com",
    # agents
    "cnfans.com",
    "acbuy.com",
    "mulebuy.com",
    "lovegobuy.com",
    "ponybuy.com",
    "allchinabuy.com",
    "hoobuy.com",
    "superbuy.com",
    "sugargoo.com",
    "basetao.com",
    "kameymall.com",
    "ezbuycn.com",
    "eastmallbuy.com",
    "hubbuycn.com",
    "joyagoo.com",
    "orientdig.com",
    "oopbuy.com",
    "sifubuy.com",
    "loongbuy.com",
    "kakobuy.com",
    "itaobuy.com",
})

# (domain family, patterns tried in order); first family whose domain is in the
# hostname decides, first matching pattern wins
ID_RULES = (
    ("cssbuy.com", (
        re.compile(r"item-(\d+)\.html", re.I),
    )),
    ("taobao.com", (
        re.compile(r"id=(\d+)", re.I),
        re.compile(r"item/(\d+)", re.I),
    )),
)

# everything else on the allow-list (CnFans, ACBuy, MuleBuy, ...)
AGENT_ID_PATTERNS = (
    re.compile(r"[?&]id=(\d+)", re.I),
    re.compile(r"product/(\d+)", re.I),
    re.compile(r"product_id=(\d+)", re.I),
    re.compile(r"product\?id=(\d+)", re.I),
)


def _hostname(url) -> Optional[str]:
    """Hostname of an absolute URL, or None when it does not parse as one."""
    if not isinstance(url, str) or not url.strip():
        return None
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not host:
        return None
    return host.lower()


def is_valid_url(url: str) -> bool:
    host = _hostname(url)
    if host is None:
        return False
    return any(domain in host for domain in SUPPORTED_DOMAINS)


def extract_product_id(url: str) -> Optional[str]:
    host = _hostname(url)
    if host is None:
        return None

    patterns = AGENT_ID_PATTERNS
    for domain, family_patterns in ID_RULES:
        if domain in host:
            patterns = family_patterns
            break

    for pattern in patterns:
        m = pattern.search(url)
        if m:
            return m.group(1)
    return None


def to_cssbuy_url(url: str) -> Optional[str]:
    """
    Canonical CSSBuy item URL for `url`, or None when the site is unsupported
    or the link shape is not recognised. Canonical URLs map onto themselves.
    """
    if not is_valid_url(url):
        return None
    product_id = extract_product_id(url)
    if not product_id:
        return None
    return TARGET_TEMPLATE.format(id=product_id)


def convert_bulk_urls(urls: Iterable[str]) -> List[ConversionResult]:
    results = []
    for url in urls:
        valid = is_valid_url(url)
        converted = to_cssbuy_url(url) if valid else None
        results.append(ConversionResult(
            original_url=url if isinstance(url, str) else str(url),
            converted_url=converted,
            is_valid=valid,
            is_convertible=converted is not None,
        ))
    return results
