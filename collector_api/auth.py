from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from supabase import Client

from .db import get_supabase


def get_client() -> Client:
    try:
        return get_supabase()
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase client initialization failed",
        ) from exc


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    client: Client = Depends(get_client),
):
    """
    Validate Supabase access token (Bearer) and return the auth user object.
    Tokens are issued by Supabase Auth, this service only checks them.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1]
    try:
        user = client.auth.get_user(token).user
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token") from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def user_id(user) -> str:
    return str(user.id)
