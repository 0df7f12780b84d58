"""JSON endpoints backing the client-side fallback router.

When a static page is missing, the browser fetches the same data through
these routes. Each request gets its own page-scoped session.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

import httpx
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from .api import (
    fetch_cluster_with_items,
    fetch_news_by_tag,
    fetch_raw_by_id,
    fetch_recent_news,
    search_news,
)
from .config import Config, load_config
from .fetcher import ResourceUnavailable
from .session import PAGE_SCOPE, DataSession
from .utils import configure_logging, log_event

logger = logging.getLogger("newshelp.fallback")


def create_app(
    config: Config | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    app = FastAPI(title="newshelp fallback API")
    app.state.config = config
    app.state.transport = transport

    async def page_session(request: Request) -> AsyncIterator[DataSession]:
        state = request.app.state
        if state.config is None:
            state.config = load_config()
        session = DataSession(state.config, scope=PAGE_SCOPE, transport=state.transport)
        try:
            yield session
        finally:
            await session.aclose()

    @app.exception_handler(ResourceUnavailable)
    async def _unavailable(request: Request, exc: ResourceUnavailable) -> JSONResponse:
        log_event(
            logger,
            logging.WARNING,
            "fallback_unavailable",
            path=request.url.path,
            resource=exc.name,
            status=exc.status,
        )
        return JSONResponse(status_code=503, content={"detail": "Failed to load data"})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/news/{item_id}")
    async def news_item(item_id: int, session: DataSession = Depends(page_session)):
        item = await fetch_raw_by_id(session, item_id)
        if item is None:
            raise HTTPException(status_code=404, detail="Article not found")
        return {"item": item}

    @app.get("/api/articles/{cluster_id}")
    async def cluster(cluster_id: int, session: DataSession = Depends(page_session)):
        result = await fetch_cluster_with_items(session, cluster_id)
        if result is None:
            raise HTTPException(status_code=404, detail="Cluster not found")
        return {"cluster": result.cluster, "items": result.items}

    @app.get("/api/tags/{tag_id}/news")
    async def tag_news(
        tag_id: int,
        limit: int = Query(20, ge=1, le=500),
        session: DataSession = Depends(page_session),
    ):
        return {"items": await fetch_news_by_tag(session, tag_id, limit)}

    @app.get("/api/search")
    async def search(
        q: str = Query("", max_length=200),
        limit: int = Query(50, ge=1, le=500),
        session: DataSession = Depends(page_session),
    ):
        return {"query": q, "items": await search_news(session, q, limit)}

    @app.get("/api/recent")
    async def recent(
        limit: int = Query(20, ge=1, le=500),
        session: DataSession = Depends(page_session),
    ):
        return {"items": await fetch_recent_news(session, limit)}

    return app


def main() -> None:
    configure_logging("newshelp.fallback")
    uvicorn.run(create_app(load_config()), host="0.0.0.0", port=8080)


app = create_app()
