"""Id to batch resolution.

Batched tables are published as contiguous files of ``BATCH_SIZE`` ids,
``<table>.<batch_id>.json`` where ``batch_id`` is the lowest id the file can
hold. Every accessor maps ids to files through :func:`batch_of`.
"""

from __future__ import annotations

import math
from typing import Iterable

BATCH_SIZE = 100


def batch_of(item_id: int) -> int:
    return (int(item_id) // BATCH_SIZE) * BATCH_SIZE


def resource_name(table: str, batch_id: int) -> str:
    return f"{table}.{batch_of(batch_id)}"


def group_by_batch(ids: Iterable[int]) -> dict[int, list[int]]:
    """Group ids by batch, batches in first-seen order."""
    groups: dict[int, list[int]] = {}
    for item_id in ids:
        groups.setdefault(batch_of(item_id), []).append(item_id)
    return groups


def batch_range(low_id: int, high_id: int) -> list[int]:
    """Ascending batch ids covering ``[low_id, high_id]``, clamped at zero."""
    low = batch_of(max(0, low_id))
    high = batch_of(high_id)
    if high < low:
        return []
    return list(range(low, high + BATCH_SIZE, BATCH_SIZE))


def recent_batch_ids(latest_id: int, count: int) -> list[int]:
    """The ``count`` batches ending at the batch of ``latest_id``, newest first."""
    if latest_id < 0 or count <= 0:
        return []
    latest_batch = batch_of(latest_id)
    return [
        latest_batch - offset * BATCH_SIZE
        for offset in range(count)
        if latest_batch - offset * BATCH_SIZE >= 0
    ]


def batches_for_limit(limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(limit / BATCH_SIZE)


def search_window(latest_id: int, static_limit: int) -> list[int]:
    """Ascending batch ids eligible for a bounded scan below ``latest_id``."""
    return sorted(recent_batch_ids(latest_id, batches_for_limit(static_limit)))
