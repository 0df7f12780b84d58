from __future__ import annotations

import logging

import httpx

from .cache import BatchCache
from .config import Config
from .fetcher import ResourceFetcher
from .models import NEWS_ARTICLES, NEWS_RAW
from .utils import log_event

BUILD_SCOPE = "build"
PAGE_SCOPE = "page"

logger = logging.getLogger("newshelp.session")


class DataSession:
    """Fetcher plus batch caches shared by every accessor for one logical session.

    A build keeps one session open for the whole process; the fallback
    endpoints open one per request. Caches can be injected so callers decide
    how long cached batches live. An injected fetcher is left open on close.
    """

    def __init__(
        self,
        config: Config,
        *,
        scope: str = BUILD_SCOPE,
        fetcher: ResourceFetcher | None = None,
        raw_cache: BatchCache | None = None,
        cluster_cache: BatchCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.scope = scope
        self._owns_fetcher = fetcher is None
        if fetcher is None:
            fetcher = ResourceFetcher(config.api, transport=transport)
        self.fetcher = fetcher
        self.raw_cache = raw_cache if raw_cache is not None else BatchCache(fetcher, NEWS_RAW)
        self.cluster_cache = (
            cluster_cache if cluster_cache is not None else BatchCache(fetcher, NEWS_ARTICLES)
        )

    def cache_for(self, table_name: str) -> BatchCache:
        if table_name == NEWS_RAW.name:
            return self.raw_cache
        if table_name == NEWS_ARTICLES.name:
            return self.cluster_cache
        raise ValueError(f"unknown batched table: {table_name}")

    @property
    def static_limit(self) -> int:
        return self.config.site.static_article_limit

    async def aclose(self) -> None:
        log_event(
            logger,
            logging.DEBUG,
            "session_closed",
            scope=self.scope,
            raw_batches=len(self.raw_cache),
            cluster_batches=len(self.cluster_cache),
        )
        if self._owns_fetcher:
            await self.fetcher.aclose()

    async def __aenter__(self) -> "DataSession":
        log_event(logger, logging.DEBUG, "session_opened", scope=self.scope)
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
