from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Iterator

from .batching import batch_of, resource_name
from .fetcher import ResourceFetcher, ResourceUnavailable
from .models import BatchedTable, decode_rows
from .utils import log_event


class BatchCache:
    """Batch id -> decoded rows for one batched table.

    Batches are append-only upstream, so a stored batch stays valid for the
    lifetime of the cache. A missing batch (404) is stored as an empty list.
    Other failures yield an empty list without being stored.
    """

    def __init__(self, fetcher: ResourceFetcher, table: BatchedTable) -> None:
        self.fetcher = fetcher
        self.table = table
        self._batches: dict[int, list[Any]] = {}
        self._logger = logging.getLogger("newshelp.cache")

    def __contains__(self, batch_id: int) -> bool:
        return batch_of(batch_id) in self._batches

    def __len__(self) -> int:
        return len(self._batches)

    def batch_ids(self) -> list[int]:
        return list(self._batches)

    async def get_batch(self, batch_id: int) -> list[Any]:
        batch_id = batch_of(batch_id)
        cached = self._batches.get(batch_id)
        if cached is not None:
            log_event(
                self._logger, logging.DEBUG, "batch_cache_hit", table=self.table.name, batch=batch_id
            )
            return cached

        name = resource_name(self.table.name, batch_id)
        try:
            payload = await self.fetcher.fetch(name, memoize=False)
        except ResourceUnavailable as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "batch_missing",
                table=self.table.name,
                batch=batch_id,
                status=exc.status,
                timed_out=exc.timed_out,
            )
            if exc.not_found:
                return self._batches.setdefault(batch_id, [])
            return []

        rows = [
            row
            for row in decode_rows(payload, self.table.decode, name)
            if batch_of(row.id) == batch_id
        ]
        return self._batches.setdefault(batch_id, rows)

    async def get_batches(self, batch_ids: Iterable[int]) -> dict[int, list[Any]]:
        """Fetch distinct batches concurrently, keyed in first-seen order."""
        unique = list(dict.fromkeys(batch_of(batch_id) for batch_id in batch_ids))
        results = await asyncio.gather(*(self.get_batch(batch_id) for batch_id in unique))
        return dict(zip(unique, results))

    def peek(self, item_id: int) -> Any | None:
        for row in self._batches.get(batch_of(item_id), []):
            if row.id == item_id:
                return row
        return None

    def cached_items(self) -> Iterator[Any]:
        for batch_id in self._batches:
            yield from self._batches[batch_id]
