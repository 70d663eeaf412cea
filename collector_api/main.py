import logging

from fastapi import FastAPI

from .config import get_settings
from .routers import collections, convert, items

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Collector Backend", version="0.1.0")


@app.get("/health")
def healthcheck():
    return {"status": "ok", "env": get_settings().env}


app.include_router(convert.router, tags=["convert"])
app.include_router(items.router, tags=["items"])
app.include_router(collections.router, prefix="/collections", tags=["collections"])
