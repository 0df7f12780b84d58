from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from newshelp.config import config_from_dict
from newshelp.session import DataSession

BASE_URL = "https://api.test"


def raw_row(item_id: int, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": item_id,
        "source": "1",
        "title": f"Item {item_id}",
        "article": f"Body of item {item_id}",
        "cats": [],
        "imgUrl": "",
        "cluster_id": None,
        "created_at": f"2025-01-01T00:00:{item_id % 60:02d}Z",
        "guid": f"guid-{item_id}",
        "objective": 7,
    }
    row.update(overrides)
    return row


def cluster_row(cluster_id: int, articles: list[int], **overrides: Any) -> dict[str, Any]:
    row = {
        "id": cluster_id,
        "title": f"Cluster {cluster_id}",
        "short_desc": "",
        "articles": articles,
        "created_at": "2025-01-02T00:00:00Z",
        "cats": [],
    }
    row.update(overrides)
    return row


def meta_payload(news_raw: int, news_articles: int = 0) -> dict[str, Any]:
    return {
        "generated_at": "2025-01-03T00:00:00Z",
        "tables": {
            "news_articles": {"latest_id": news_articles},
            "news_raw": {"latest_id": news_raw},
            "news_sources": {"latest_id": 2},
            "tag_articles": {"latest_id": 5},
            "tags": {"latest_id": 5},
        },
    }


class FakeApi:
    """In-memory JSON API; records every requested resource name."""

    def __init__(self) -> None:
        self.resources: dict[str, Any] = {}
        self.failures: dict[str, Any] = {}
        self.requests: list[str] = []
        self.delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, name: str, payload: Any) -> None:
        self.resources[name] = payload

    def set_meta(self, news_raw: int, news_articles: int = 0) -> None:
        self.resources["meta"] = meta_payload(news_raw, news_articles)

    cluster_row = staticmethod(cluster_row)
    raw_row = staticmethod(raw_row)

    def add_raw_batch(self, batch_id: int, ids: list[int], **overrides: Any) -> None:
        self.resources[f"news_raw.{batch_id}"] = [raw_row(item_id, **overrides) for item_id in ids]

    def add_cluster_batch(self, batch_id: int, rows: list[dict[str, Any]]) -> None:
        self.resources[f"news_articles.{batch_id}"] = rows

    def fail(self, name: str, status: Any) -> None:
        self.failures[name] = status

    def count(self, name: str) -> int:
        return self.requests.count(name)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.lstrip("/")
        name = path[: -len(".json")] if path.endswith(".json") else path
        self.requests.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        failure = self.failures.get(name)
        if failure == "timeout":
            raise httpx.ReadTimeout("timed out", request=request)
        if failure is not None:
            return httpx.Response(failure, json={"error": "failed"})
        if name not in self.resources:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=self.resources[name])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def make_config():
    def _make(static_limit: int = 100, timeout_ms: int = 30000):
        return config_from_dict(
            {
                "api": {"base_url": BASE_URL, "timeout_ms": timeout_ms},
                "site": {"url": "https://site.test", "static_article_limit": static_limit},
            }
        )

    return _make


@pytest.fixture
def make_session(fake_api, make_config):
    def _make(static_limit: int = 100) -> DataSession:
        return DataSession(make_config(static_limit), transport=fake_api.transport)

    return _make
