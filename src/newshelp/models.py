from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .fetcher import MetadataMissing
from .utils import log_event

logger = logging.getLogger("newshelp.models")


@dataclass(frozen=True)
class Source:
    id: int
    title: str
    link: str
    description: str
    origin: str


@dataclass(frozen=True)
class Tag:
    id: int
    tag: str
    desc: str
    order_by: int
    parent: list[int]


@dataclass(frozen=True)
class TableMeta:
    latest_id: int


@dataclass(frozen=True)
class Meta:
    generated_at: str
    tables: dict[str, TableMeta]

    def latest_id(self, table: str) -> int:
        entry = self.tables.get(table)
        if entry is None:
            raise MetadataMissing("meta", reason=f"no latest_id for table {table}")
        return entry.latest_id


@dataclass(frozen=True)
class RawItem:
    id: int
    source: str
    title: str
    article: str
    cats: list[int]
    img_url: str
    cluster_id: int | None
    created_at: str
    guid: str
    objective: int | None


@dataclass(frozen=True)
class Cluster:
    id: int
    title: str
    short_desc: str
    articles: list[int]
    created_at: str
    cats: list[int]


@dataclass(frozen=True)
class TagArticles:
    tag_id: int
    articles: list[int]
    description: str


@dataclass(frozen=True)
class ClusterWithItems:
    cluster: Cluster
    items: list[RawItem]


@dataclass(frozen=True)
class CoreData:
    meta: Meta
    sources: list[Source]
    tags: list[Tag]
    tag_articles: list[TagArticles]
    sources_by_id: dict[int, Source] = field(default_factory=dict)


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _int_list(value: Any) -> list[int]:
    if not isinstance(value, list):
        return []
    result = []
    for item in value:
        parsed = _int_or_none(item)
        if parsed is not None:
            result.append(parsed)
    return result


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def decode_source(row: dict[str, Any]) -> Source:
    return Source(
        id=int(row["id"]),
        title=_text(row.get("title")),
        link=_text(row.get("link")),
        description=_text(row.get("description")),
        origin=_text(row.get("origin")),
    )


def decode_tag(row: dict[str, Any]) -> Tag:
    return Tag(
        id=int(row["id"]),
        tag=_text(row.get("tag")),
        desc=_text(row.get("desc")),
        order_by=_int_or_none(row.get("orderBy")) or 0,
        parent=_int_list(row.get("parent")),
    )


def decode_raw_item(row: dict[str, Any]) -> RawItem:
    return RawItem(
        id=int(row["id"]),
        source=_text(row.get("source")),
        title=_text(row.get("title")),
        article=_text(row.get("article")),
        cats=_int_list(row.get("cats")),
        img_url=_text(row.get("imgUrl")),
        cluster_id=_int_or_none(row.get("cluster_id")),
        created_at=_text(row.get("created_at")),
        guid=_text(row.get("guid")),
        objective=_int_or_none(row.get("objective")),
    )


def decode_cluster(row: dict[str, Any]) -> Cluster:
    return Cluster(
        id=int(row["id"]),
        title=_text(row.get("title")),
        short_desc=_text(row.get("short_desc")),
        articles=_int_list(row.get("articles")),
        created_at=_text(row.get("created_at")),
        cats=_int_list(row.get("cats")),
    )


def decode_tag_articles(row: dict[str, Any]) -> TagArticles:
    return TagArticles(
        tag_id=int(row["tag_id"]),
        articles=_int_list(row.get("articles")),
        description=_text(row.get("description")),
    )


def decode_meta(payload: Any) -> Meta:
    if not isinstance(payload, dict) or not isinstance(payload.get("tables"), dict):
        raise MetadataMissing("meta", reason="payload has no tables")
    tables: dict[str, TableMeta] = {}
    for name, entry in payload["tables"].items():
        latest_id = _int_or_none(entry.get("latest_id")) if isinstance(entry, dict) else None
        if latest_id is None:
            continue
        tables[name] = TableMeta(latest_id=latest_id)
    return Meta(generated_at=_text(payload.get("generated_at")), tables=tables)


def decode_rows(payload: Any, decode: Callable[[dict[str, Any]], Any], resource: str) -> list[Any]:
    """Decode a JSON array, skipping rows that lack usable ids."""
    if not isinstance(payload, list):
        log_event(logger, logging.WARNING, "unexpected_payload", resource=resource)
        return []
    rows = []
    for row in payload:
        if not isinstance(row, dict):
            continue
        try:
            rows.append(decode(row))
        except (KeyError, TypeError, ValueError):
            log_event(logger, logging.WARNING, "row_skipped", resource=resource)
    return rows


@dataclass(frozen=True)
class BatchedTable:
    name: str
    decode: Callable[[dict[str, Any]], Any]


NEWS_RAW = BatchedTable("news_raw", decode_raw_item)
NEWS_ARTICLES = BatchedTable("news_articles", decode_cluster)
