import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from supabase import Client

from collector.errors import (
    ConversionError,
    ExtractionError,
    FetchError,
    UnsupportedUrlError,
)
from collector.scrape import canonical_url, scrape_url

from ..auth import get_client, get_current_user, user_id
from ..config import Settings, get_settings
from ..db import rows
from ..models import Item, ScrapeRequest

logger = logging.getLogger(__name__)
router = APIRouter()

TABLE = "items"


def find_duplicate(existing: List[Dict[str, Any]], url: str, converted: str) -> Optional[Dict[str, Any]]:
    """
    An item counts as already saved when any of its three provenance fields
    points at this submission: source_url or original_url equal to the URL as
    submitted, or converted_url equal to its canonical form. All three are
    checked on purpose; a link pasted in agent form and later in CSSBuy form is
    only caught by the converted_url comparison.
    """
    for row in existing:
        if row.get("source_url") == url or row.get("original_url") == url or row.get("converted_url") == converted:
            return row
    return None


def _matches(row: Dict[str, Any], q: str) -> bool:
    q = q.lower()
    haystack = [row.get("title") or "", row.get("description") or ""] + list(row.get("tags") or [])
    return any(q in s.lower() for s in haystack)


def _owned_item(client: Client, item_id: UUID, current_user) -> Dict[str, Any]:
    data = rows(client.table(TABLE).select("*").eq("id", str(item_id)).limit(1))
    if not data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    item = data[0]
    if str(item.get("user_id")) != user_id(current_user):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized")
    return item


@router.post("/scrape", response_model=Item)
async def scrape(
    payload: ScrapeRequest,
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
    settings: Settings = Depends(get_settings),
):
    """
    Scrape a product link and save it into one of the caller's collections.
    """
    try:
        converted = canonical_url(payload.url)
    except (UnsupportedUrlError, ConversionError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    uid = user_id(current_user)
    existing = rows(
        client.table(TABLE)
        .select("id,source_url,original_url,converted_url")
        .eq("user_id", uid)
        .eq("collection", payload.collection)
    )
    if find_duplicate(existing, payload.url, converted):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This URL has already been scraped and saved to this collection",
        )

    try:
        record = await scrape_url(
            payload.url,
            use_render=payload.use_javascript,
            timeout=settings.scrape_timeout,
            render_timeout_ms=settings.render_timeout_ms,
            user_agent=settings.user_agent,
        )
    except FetchError as exc:
        logger.warning("Scrape of %s failed: %s", payload.url, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Scraping failed: {exc}") from exc
    except ExtractionError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Scraping failed: {exc}") from exc

    item = record.model_dump(mode="json")
    item.update({
        "id": str(uuid4()),
        "user_id": uid,
        "collection": payload.collection,
        "tags": payload.tags,
        "is_favorite": False,
        "created_at": datetime.now(timezone.utc).isoformat(),
    })
    data = rows(client.table(TABLE).insert(item))
    if not data:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save scraped item",
        )
    logger.info("Saved %s to collection %r for user %s", record.source_url, payload.collection, uid)
    return data[0]


@router.get("/scrape", response_model=List[Item])
def list_items(
    q: Optional[str] = Query(default=None, description="search title, description and tags"),
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    data = rows(
        client.table(TABLE)
        .select("*")
        .eq("user_id", user_id(current_user))
        .order("created_at", desc=True)
    )
    if q:
        data = [row for row in data if _matches(row, q)]
    return data


@router.get("/scrape/collections/{collection}", response_model=List[Item])
def collection_items(
    collection: str,
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    return rows(
        client.table(TABLE)
        .select("*")
        .eq("user_id", user_id(current_user))
        .eq("collection", collection)
        .order("created_at", desc=True)
    )


@router.get("/scrape/{item_id}", response_model=Item)
def get_item(
    item_id: UUID,
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    return _owned_item(client, item_id, current_user)


@router.delete("/scrape/{item_id}")
def delete_item(
    item_id: UUID,
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    _owned_item(client, item_id, current_user)
    rows(client.table(TABLE).delete().eq("id", str(item_id)))
    return {"message": "Item removed"}


@router.put("/scrape/{item_id}/favorite", response_model=Item)
def toggle_favorite(
    item_id: UUID,
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    item = _owned_item(client, item_id, current_user)
    data = rows(
        client.table(TABLE)
        .update({"is_favorite": not item.get("is_favorite", False)})
        .eq("id", str(item_id))
    )
    return data[0] if data else {**item, "is_favorite": not item.get("is_favorite", False)}
