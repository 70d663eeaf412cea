import logging
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import HTTPException, status
from supabase import Client, create_client

from .config import get_settings

logger = logging.getLogger(__name__)

# values shipped in .env.example
PLACEHOLDERS = ("your-project.supabase.co", "your-service-role-key")


@lru_cache()
def get_supabase() -> Client:
    settings = get_settings()
    url = str(settings.supabase_url)
    if any(p in url or p == settings.supabase_key for p in PLACEHOLDERS):
        raise RuntimeError(
            "Supabase settings still hold the .env.example placeholders. "
            "Set SUPABASE_URL and SUPABASE_SERVICE_KEY for your project."
        )
    return create_client(url, settings.supabase_key)


def rows(query) -> List[Dict[str, Any]]:
    """Execute a supabase query builder and return its rows, mapping failures to 502."""
    try:
        resp = query.execute()
    except Exception as exc:
        logger.exception("Supabase query raised an exception")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Supabase error: {exc}",
        ) from exc

    # supabase-py v2 raises on errors, older versions set resp.error
    error = getattr(resp, "error", None)
    if error:
        logger.error("Supabase response.error: %s", error)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Supabase error: {error}",
        )
    return getattr(resp, "data", None) or []
