import argparse
import asyncio
import logging
import sys
from typing import Iterable, List
from urllib.parse import urlsplit

import orjson

from .errors import ConversionError, ScrapeError, UnsupportedUrlError
from .fetcher import RENDER_TIMEOUT_MS, TIMEOUT_S, UA, fetch_html
from .links import convert_bulk_urls, is_valid_url, to_cssbuy_url
from .parser_generic import extract_product
from .schema import ConversionResult, ProductRecord

logger = logging.getLogger(__name__)


def canonical_url(url: str) -> str:
    """Validated CSSBuy URL for `url`; raises the matching user-facing error."""
    if not is_valid_url(url):
        raise UnsupportedUrlError(url)
    converted = to_cssbuy_url(url)
    if not converted:
        raise ConversionError(url)
    return converted


async def scrape_url(url: str, use_render: bool = False, timeout=TIMEOUT_S,
                     render_timeout_ms=RENDER_TIMEOUT_MS, user_agent=UA) -> ProductRecord:
    """
    normalize -> fetch -> extract -> stamp provenance.

    All or nothing: any failure propagates as a ScrapeError subclass and no
    partial record is returned.
    """
    converted = canonical_url(url)
    html = await fetch_html(
        converted,
        render=use_render,
        timeout=timeout,
        render_timeout_ms=render_timeout_ms,
        user_agent=user_agent,
    )
    extracted = extract_product(html, converted)

    record = ProductRecord(
        **extracted.model_dump(),
        original_url=url,
        source_url=converted,
        converted_url=converted,
        domain=urlsplit(converted).hostname or "",
    )
    logger.info("Scraped %s -> %r (%d images, price=%s)",
                converted, record.title, len(record.images), record.price)
    return record


def convert_many(urls: Iterable[str]) -> List[ConversionResult]:
    """Pre-flight check for a batch: conversion only, nothing is fetched."""
    return convert_bulk_urls(urls)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Scrape a product page through its CSSBuy link.")
    parser.add_argument("urls", nargs="+", help="product links (taobao, cssbuy or agent sites)")
    parser.add_argument("--render", action="store_true", help="load the page in headless Chromium")
    parser.add_argument("--convert-only", action="store_true", help="only convert the links, do not fetch")
    parser.add_argument("--timeout", type=float, default=TIMEOUT_S, help="static fetch timeout, seconds")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.convert_only:
        results = [r.model_dump(by_alias=True) for r in convert_many(args.urls)]
        sys.stdout.buffer.write(orjson.dumps(results, option=orjson.OPT_INDENT_2) + b"\n")
        return 0

    failed = 0
    for url in args.urls:
        try:
            record = asyncio.run(scrape_url(url, use_render=args.render, timeout=args.timeout))
        except ScrapeError as e:
            failed += 1
            logger.error("%s: %s", url, e)
            continue
        sys.stdout.buffer.write(orjson.dumps(record.model_dump(by_alias=True), option=orjson.OPT_INDENT_2) + b"\n")
    return 1 if failed else 0


if __name__ == "__main__":
    #   python -m collector.scrape https://item.taobao.com/item.htm?id=123
    #   python -m collector.scrape --render https://cnfans.com/product/55
    sys.exit(main())
