from typing import Optional


class ScrapeError(Exception):
    """Base class for everything `scrape_url` can raise."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class UnsupportedUrlError(ScrapeError):
    """The URL does not belong to any supported marketplace or agent site."""

    def __init__(self, url: str):
        super().__init__("Invalid URL: Not a supported e-commerce or agent URL", url)


class ConversionError(ScrapeError):
    """Supported site, but no product id could be pulled out of the URL."""

    def __init__(self, url: str):
        super().__init__("Could not convert URL to CSSBuy format", url)


class FetchError(ScrapeError):
    """Network failure, timeout, non-2xx status or browser navigation failure."""


class ExtractionError(ScrapeError):
    """The fetched document could not be parsed as HTML at all."""
