from __future__ import annotations

from typing import Iterable

from .models import Tag
from .utils import slugify


def _ordered(tags: Iterable[Tag]) -> list[Tag]:
    return sorted(tags, key=lambda tag: (tag.order_by, tag.id))


def root_tags(tags: Iterable[Tag]) -> list[Tag]:
    return _ordered(tag for tag in tags if not tag.parent)


def child_tags(tags: Iterable[Tag], parent_id: int) -> list[Tag]:
    return _ordered(tag for tag in tags if parent_id in tag.parent)


def tag_by_slug(tags: Iterable[Tag], slug: str) -> Tag | None:
    for tag in tags:
        if slugify(tag.tag) == slug:
            return tag
    return None


def tag_lineage(tags: Iterable[Tag], tag_id: int) -> list[Tag]:
    """Root-first ancestry of ``tag_id``, following the first parent."""
    by_id = {tag.id: tag for tag in tags}
    lineage: list[Tag] = []
    current = by_id.get(tag_id)
    while current is not None and current.id not in {tag.id for tag in lineage}:
        lineage.append(current)
        current = by_id.get(current.parent[0]) if current.parent else None
    lineage.reverse()
    return lineage
