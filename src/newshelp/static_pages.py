from __future__ import annotations

import asyncio
import json
import os
from dataclasses import dataclass

from .api import fetch_meta, fetch_tags
from .batching import batch_range
from .models import NEWS_ARTICLES, NEWS_RAW, BatchedTable, Tag
from .session import DataSession
from .utils import slugify


@dataclass(frozen=True)
class PageEntry:
    id: int
    lastmod: str


@dataclass(frozen=True)
class SitePages:
    generated_at: str
    tags: list[tuple[str, Tag]]
    news: list[PageEntry]
    articles: list[PageEntry]


def static_window(latest_id: int, static_limit: int) -> range:
    """Ids that get a pre-rendered page: ``(latest_id - static_limit, latest_id]``."""
    low = max(0, latest_id - static_limit + 1)
    if static_limit <= 0 or latest_id < low:
        return range(0)
    return range(low, latest_id + 1)


async def static_entries(session: DataSession, table: BatchedTable) -> list[PageEntry]:
    meta = await fetch_meta(session)
    window = static_window(meta.latest_id(table.name), session.static_limit)
    if not window:
        return []
    batches = await session.cache_for(table.name).get_batches(batch_range(window.start, window[-1]))
    entries = [
        PageEntry(id=row.id, lastmod=row.created_at or meta.generated_at)
        for batch in batches.values()
        for row in batch
        if row.id in window
    ]
    entries.sort(key=lambda entry: entry.id, reverse=True)
    return entries


async def collect_site_pages(session: DataSession) -> SitePages:
    meta = await fetch_meta(session)
    tags, news, articles = await asyncio.gather(
        fetch_tags(session),
        static_entries(session, NEWS_RAW),
        static_entries(session, NEWS_ARTICLES),
    )
    return SitePages(
        generated_at=meta.generated_at,
        tags=[(slugify(tag.tag), tag) for tag in tags],
        news=news,
        articles=articles,
    )


def write_page_manifest(pages: SitePages, path: str, site_url: str) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    payload = {
        "generated_at": pages.generated_at,
        "tags": [
            {
                "id": tag.id,
                "slug": slug,
                "loc": f"{site_url}/tag/{slug}",
                "lastmod": pages.generated_at,
            }
            for slug, tag in pages.tags
        ],
        "news": [
            {"id": entry.id, "loc": f"{site_url}/news/{entry.id}", "lastmod": entry.lastmod}
            for entry in pages.news
        ],
        "articles": [
            {"id": entry.id, "loc": f"{site_url}/articles/{entry.id}", "lastmod": entry.lastmod}
            for entry in pages.articles
        ],
    }
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
    return path
