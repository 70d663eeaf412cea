import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, ValidationError

from collector.fetcher import RENDER_TIMEOUT_MS, TIMEOUT_S, UA


class Settings(BaseModel):
    supabase_url: HttpUrl = Field(alias="SUPABASE_URL")
    supabase_key: str = Field(alias="SUPABASE_SERVICE_KEY")
    env: str = Field(default="local", alias="APP_ENV")
    # scraper knobs; the domain allow-list is deliberately not configurable
    scrape_timeout: float = Field(default=TIMEOUT_S, alias="SCRAPE_TIMEOUT")
    render_timeout_ms: int = Field(default=RENDER_TIMEOUT_MS, alias="SCRAPE_RENDER_TIMEOUT_MS")
    user_agent: str = Field(default=UA, alias="SCRAPE_USER_AGENT")


def _load_dotenv():
    # Load from repo root if present, otherwise rely on environment variables.
    root_env = Path(__file__).resolve().parents[1] / ".env"
    if root_env.exists():
        load_dotenv(root_env)
    else:
        load_dotenv()


@lru_cache()
def get_settings() -> Settings:
    _load_dotenv()
    try:
        return Settings(**os.environ)
    except ValidationError as exc:
        missing = [e["loc"][0] for e in exc.errors() if e["type"] == "missing"]
        if not missing:
            raise RuntimeError(f"Invalid configuration: {exc}") from exc
        detail = f"Missing required environment variables: {', '.join(missing)}"
        raise RuntimeError(detail) from exc
