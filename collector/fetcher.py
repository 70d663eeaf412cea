import asyncio
import logging

import requests
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .errors import FetchError

logger = logging.getLogger(__name__)

UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
HEADERS = {
    "User-Agent": UA,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

TIMEOUT_S = 20
CONNECT_TIMEOUT_S = 5
RENDER_TIMEOUT_MS = 30000
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


def fetch_static(url: str, timeout=TIMEOUT_S, user_agent=UA) -> str:
    """Single GET, body returned as-is. No retries here."""
    headers = {**HEADERS, "User-Agent": user_agent}
    try:
        r = requests.get(url, headers=headers, timeout=(min(CONNECT_TIMEOUT_S, timeout), timeout))
    except requests.RequestException as exc:
        logger.warning("GET %s failed: %s", url, exc)
        raise FetchError(f"Failed to fetch {url}: {exc}", url) from exc

    if not 200 <= r.status_code < 300:
        logger.warning("GET %s returned HTTP %s", url, r.status_code)
        raise FetchError(f"Failed to fetch {url}: HTTP {r.status_code}", url)
    return r.text


async def fetch_rendered(url: str, timeout_ms=RENDER_TIMEOUT_MS, user_agent=UA) -> str:
    """
    Load `url` in a throwaway headless Chromium and return the rendered DOM.

    The browser belongs to this call only. It is closed on every exit path,
    including navigation timeouts and cancellation.
    """
    try:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=True, args=BROWSER_ARGS)
            try:
                ctx = await browser.new_context(user_agent=user_agent)
                page = await ctx.new_page()
                page.set_default_timeout(timeout_ms)
                # Navigate and wait for network to be idle
                await page.goto(url, timeout=timeout_ms, wait_until="networkidle")
                return await page.content()
            finally:
                await browser.close()
    except (PlaywrightError, OSError) as exc:
        # playwright's TimeoutError is a subclass of Error; OSError covers driver startup
        logger.warning("Rendered fetch of %s failed: %s", url, exc)
        raise FetchError(f"Failed to render {url}: {exc}", url) from exc


async def fetch_html(url: str, render: bool = False, timeout=TIMEOUT_S,
                     render_timeout_ms=RENDER_TIMEOUT_MS, user_agent=UA) -> str:
    """
    Raw HTML for `url`. `render` picks the headless browser path for pages that
    build their content with JavaScript; the caller decides, nothing is sniffed.
    """
    logger.info("Fetching %s (%s)", url, "rendered" if render else "static")
    if render:
        html = await fetch_rendered(url, timeout_ms=render_timeout_ms, user_agent=user_agent)
    else:
        # requests only bounds connect and each read, this bounds the whole GET
        try:
            html = await asyncio.wait_for(asyncio.to_thread(fetch_static, url, timeout, user_agent), timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("GET %s exceeded %ss", url, timeout)
            raise FetchError(f"Failed to fetch {url}: timed out after {timeout}s", url) from exc
    logger.debug("Fetched %d chars from %s", len(html), url)
    return html
