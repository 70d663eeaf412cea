from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    # camelCase on the wire, snake_case in Python; never mutated once built
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ExtractedProduct(_Record):
    title: str = ""
    description: str = ""
    images: List[str] = Field(default_factory=list)   # absolute URLs, no duplicates
    price: Optional[str] = None                        # raw text, not normalised
    details: Dict[str, str] = Field(default_factory=dict)
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProductRecord(ExtractedProduct):
    source_url: str          # canonical URL that was fetched
    original_url: str        # URL as submitted
    converted_url: str       # same as source_url, kept for provenance
    domain: str              # hostname of source_url


class ConversionResult(_Record):
    original_url: str
    converted_url: Optional[str] = None
    is_valid: bool = False        # domain is on the allow-list
    is_convertible: bool = False  # product id found, canonical URL built
