"""Read accessors over the published JSON API.

Every accessor takes a :class:`~newshelp.session.DataSession` as its first
argument and returns plain dataclasses. Batch fetch failures degrade to empty
results at the batch cache. Only the metadata gate (:func:`fetch_meta`) is
fatal, because range-bounded reads have no ceiling without it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from .batching import BATCH_SIZE, batch_range, group_by_batch, recent_batch_ids, search_window
from .fetcher import MetadataMissing, ResourceUnavailable
from .models import (
    NEWS_ARTICLES,
    NEWS_RAW,
    BatchedTable,
    Cluster,
    ClusterWithItems,
    CoreData,
    Meta,
    RawItem,
    Source,
    Tag,
    TagArticles,
    decode_cluster,
    decode_meta,
    decode_rows,
    decode_source,
    decode_tag,
    decode_tag_articles,
)
from .session import DataSession
from .utils import log_event

logger = logging.getLogger("newshelp.api")

CORE_PREFETCH_BATCHES = 2


async def fetch_meta(session: DataSession) -> Meta:
    try:
        payload = await session.fetcher.fetch("meta")
    except ResourceUnavailable as exc:
        log_event(logger, logging.ERROR, "meta_missing", status=exc.status, timed_out=exc.timed_out)
        raise MetadataMissing(
            "meta", status=exc.status, timed_out=exc.timed_out, reason=exc.reason
        ) from exc
    return decode_meta(payload)


async def fetch_sources(session: DataSession) -> list[Source]:
    payload = await session.fetcher.fetch("news_sources")
    return decode_rows(payload, decode_source, "news_sources")


async def fetch_tags(session: DataSession) -> list[Tag]:
    payload = await session.fetcher.fetch("tags")
    return decode_rows(payload, decode_tag, "tags")


async def fetch_tag_articles(session: DataSession) -> list[TagArticles]:
    payload = await session.fetcher.fetch("tag_articles")
    return decode_rows(payload, decode_tag_articles, "tag_articles")


async def fetch_cluster_index(session: DataSession) -> list[Cluster]:
    """The unbatched ``news_articles`` listing."""
    payload = await session.fetcher.fetch(NEWS_ARTICLES.name)
    return decode_rows(payload, decode_cluster, NEWS_ARTICLES.name)


async def fetch_by_id(session: DataSession, table: BatchedTable, item_id: int) -> Any | None:
    batch = await session.cache_for(table.name).get_batch(item_id)
    for row in batch:
        if row.id == item_id:
            return row
    return None


async def fetch_raw_by_id(session: DataSession, item_id: int) -> RawItem | None:
    return await fetch_by_id(session, NEWS_RAW, item_id)


async def fetch_cluster_by_id(session: DataSession, cluster_id: int) -> Cluster | None:
    return await fetch_by_id(session, NEWS_ARTICLES, cluster_id)


async def fetch_many_by_ids(
    session: DataSession, table: BatchedTable, ids: Iterable[int]
) -> list[Any]:
    """Resolve ``ids`` with one fetch per distinct batch.

    The result follows the order of ``ids``; ids without a row are dropped.
    """
    ids = [int(item_id) for item_id in ids]
    if not ids:
        return []
    groups = group_by_batch(ids)
    batches = await session.cache_for(table.name).get_batches(groups)
    by_id: dict[int, Any] = {}
    for batch_id, wanted in groups.items():
        wanted_set = set(wanted)
        for row in batches[batch_id]:
            if row.id in wanted_set:
                by_id.setdefault(row.id, row)
    return [by_id[item_id] for item_id in ids if item_id in by_id]


async def fetch_raw_by_ids(session: DataSession, ids: Iterable[int]) -> list[RawItem]:
    return await fetch_many_by_ids(session, NEWS_RAW, ids)


async def fetch_clusters_by_ids(session: DataSession, ids: Iterable[int]) -> list[Cluster]:
    return await fetch_many_by_ids(session, NEWS_ARTICLES, ids)


async def fetch_news_by_tag(session: DataSession, tag_id: int, limit: int = 20) -> list[RawItem]:
    """Items for a tag in the order the tag mapping lists them."""
    if limit <= 0:
        return []
    try:
        mappings = await fetch_tag_articles(session)
    except ResourceUnavailable as exc:
        log_event(logger, logging.WARNING, "tag_articles_unavailable", tag_id=tag_id, error=str(exc))
        return []
    mapping = next((row for row in mappings if row.tag_id == tag_id), None)
    if mapping is None or not mapping.articles:
        return []
    return await fetch_raw_by_ids(session, mapping.articles[:limit])


async def search_news(session: DataSession, query: str, limit: int = 50) -> list[RawItem]:
    """Substring search over the most recent batches only.

    Matches come back in scan order, lowest batch first, with no ranking.
    """
    if not query or not query.strip() or limit <= 0:
        return []
    meta = await fetch_meta(session)
    latest_id = meta.latest_id(NEWS_RAW.name)
    window = search_window(latest_id, session.static_limit)
    batches = await session.raw_cache.get_batches(window)
    needle = query.lower()
    results: list[RawItem] = []
    for batch_id in window:
        for item in batches[batch_id]:
            if item.id > latest_id:
                continue
            if needle in item.title.lower() or needle in item.article.lower():
                results.append(item)
                if len(results) >= limit:
                    return results
    return results


async def fetch_recent(session: DataSession, table: BatchedTable, limit: int) -> list[Any]:
    """The ``limit`` highest ids at or below the table's latest id, newest first.

    The batches covering ``[latest_id - limit + 1, latest_id]`` are fetched
    together. When gaps leave fewer than ``limit`` rows, older batches are
    read one at a time until enough rows are collected or batch 0 is read.
    """
    if limit <= 0:
        return []
    meta = await fetch_meta(session)
    latest_id = meta.latest_id(table.name)
    cache = session.cache_for(table.name)
    batch_ids = sorted(batch_range(latest_id - limit + 1, latest_id), reverse=True)
    if not batch_ids:
        return []
    batches = await cache.get_batches(batch_ids)
    rows = [row for batch in batches.values() for row in batch if row.id <= latest_id]
    next_batch = batch_ids[-1] - BATCH_SIZE
    while len(rows) < limit and next_batch >= 0:
        older = await cache.get_batch(next_batch)
        rows.extend(row for row in older if row.id <= latest_id)
        next_batch -= BATCH_SIZE
    rows.sort(key=lambda row: row.id, reverse=True)
    return rows[:limit]


async def fetch_recent_news(session: DataSession, limit: int = 20) -> list[RawItem]:
    return await fetch_recent(session, NEWS_RAW, limit)


async def fetch_recent_clusters(session: DataSession, limit: int = 20) -> list[Cluster]:
    return await fetch_recent(session, NEWS_ARTICLES, limit)


async def fetch_cluster_with_items(
    session: DataSession, cluster_id: int
) -> ClusterWithItems | None:
    cluster = await fetch_cluster_by_id(session, cluster_id)
    if cluster is None:
        return None
    items = await fetch_raw_by_ids(session, cluster.articles)
    return ClusterWithItems(cluster=cluster, items=items)


async def load_core(session: DataSession) -> CoreData:
    """Meta, sources, tags and tag mappings, plus the newest item batches."""
    meta = await fetch_meta(session)
    sources, tags, tag_articles = await asyncio.gather(
        fetch_sources(session),
        fetch_tags(session),
        fetch_tag_articles(session),
    )
    raw_meta = meta.tables.get(NEWS_RAW.name)
    if raw_meta is not None:
        await session.raw_cache.get_batches(
            recent_batch_ids(raw_meta.latest_id, CORE_PREFETCH_BATCHES)
        )
    return CoreData(
        meta=meta,
        sources=sources,
        tags=tags,
        tag_articles=tag_articles,
        sources_by_id={source.id: source for source in sources},
    )


def news_by_tags(session: DataSession, tag_ids: Iterable[int], limit: int = 10) -> list[RawItem]:
    """Already-cached items carrying any of ``tag_ids``. Never fetches."""
    wanted = set(tag_ids)
    seen: set[int] = set()
    results: list[RawItem] = []
    for item in session.raw_cache.cached_items():
        if len(results) >= limit:
            break
        if item.id in seen or not wanted.intersection(item.cats):
            continue
        seen.add(item.id)
        results.append(item)
    return results
