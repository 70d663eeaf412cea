from datetime import datetime, timezone
from typing import List
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from supabase import Client

from ..auth import get_client, get_current_user, user_id
from ..db import rows
from ..models import Collection, CollectionCreate, CollectionUpdate

router = APIRouter()

TABLE = "collections"


def _user_collections(client: Client, uid: str) -> List[dict]:
    return rows(client.table(TABLE).select("*").eq("user_id", uid).order("created_at"))


@router.get("/", response_model=List[Collection])
def list_collections(
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    return _user_collections(client, user_id(current_user))


@router.post("/", response_model=List[Collection], status_code=status.HTTP_201_CREATED)
def create_collection(
    payload: CollectionCreate,
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    uid = user_id(current_user)
    if any(c.get("name") == payload.name for c in _user_collections(client, uid)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Collection with this name already exists")

    record = payload.model_dump()
    record.update({
        "id": str(uuid4()),
        "user_id": uid,
        "created_at": datetime.now(timezone.utc).isoformat(),
    })
    rows(client.table(TABLE).insert(record))
    return _user_collections(client, uid)


@router.put("/{name}", response_model=List[Collection])
def update_collection(
    name: str,
    payload: CollectionUpdate,
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    """
    Rename and/or edit a collection. A rename carries the collection's items along.
    """
    uid = user_id(current_user)
    existing = _user_collections(client, uid)
    target = next((c for c in existing if c.get("name") == name), None)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found")
    if payload.name and payload.name != name and any(c.get("name") == payload.name for c in existing):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Collection with this name already exists")

    changes = payload.model_dump(exclude_none=True)
    if changes:
        rows(client.table(TABLE).update(changes).eq("id", str(target["id"])))
    if payload.name and payload.name != name:
        rows(client.table("items").update({"collection": payload.name}).eq("user_id", uid).eq("collection", name))
    return _user_collections(client, uid)


@router.delete("/{name}", response_model=List[Collection])
def delete_collection(
    name: str,
    current_user=Depends(get_current_user),
    client: Client = Depends(get_client),
):
    uid = user_id(current_user)
    rows(client.table("items").delete().eq("user_id", uid).eq("collection", name))
    rows(client.table(TABLE).delete().eq("user_id", uid).eq("name", name))
    return _user_collections(client, uid)
