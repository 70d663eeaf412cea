from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# --- public.items ---
# One scraped product saved by a user into one of their collections.
# Provenance: original_url as submitted, converted_url == source_url == the CSSBuy page fetched.
class Item(BaseModel):
    id: Optional[UUID] = None  # PRIMARY KEY
    user_id: Optional[UUID] = None  # FK to auth.users.id
    collection: str = "default"
    tags: List[str] = []
    is_favorite: bool = False
    title: str
    description: Optional[str] = None
    images: List[str] = []
    price: Optional[str] = None
    details: Dict[str, str] = {}  # jsonb
    source_url: str
    original_url: Optional[str] = None
    converted_url: Optional[str] = None
    domain: Optional[str] = None
    scraped_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


# --- public.collections ---
# Name is UNIQUE per user.
class Collection(BaseModel):
    id: Optional[UUID] = None  # PRIMARY KEY
    user_id: Optional[UUID] = None
    name: str
    description: str = ""
    is_public: bool = False
    created_at: Optional[datetime] = None


# --- request bodies ---
class ConvertRequest(BaseModel):
    url: str


class BulkConvertRequest(BaseModel):
    urls: List[str]


class ScrapeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    collection: str = Field(min_length=1)
    use_javascript: bool = Field(default=False, alias="useJavaScript")
    tags: List[str] = []


class CollectionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    description: str = ""
    is_public: bool = Field(default=False, alias="isPublic")


class CollectionUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = Field(default=None, alias="isPublic")
