from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import ApiConfig
from .utils import log_event


class ResourceUnavailable(Exception):
    """A JSON resource could not be fetched or decoded."""

    def __init__(
        self,
        name: str,
        status: int | None = None,
        timed_out: bool = False,
        reason: str | None = None,
    ) -> None:
        self.name = name
        self.status = status
        self.timed_out = timed_out
        self.reason = reason
        super().__init__(self._describe())

    @property
    def not_found(self) -> bool:
        return self.status == 404

    def _describe(self) -> str:
        if self.timed_out:
            detail = "timed out"
        elif self.status is not None:
            detail = f"status {self.status}"
        else:
            detail = self.reason or "request failed"
        return f"Failed to fetch {self.name}.json: {detail}"


class MetadataMissing(ResourceUnavailable):
    """The meta resource, or a table inside it, is unavailable."""


class ResourceFetcher:
    """Fetches ``<base_url>/<name>.json`` with an optional per-name memo.

    Never retries. Memoized results live as long as the fetcher does, so one
    fetcher is shared by everything in a build or a page session.
    """

    def __init__(
        self,
        config: ApiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.timeout_ms = config.timeout_ms
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_ms / 1000),
            headers={"User-Agent": config.user_agent, "Accept": "application/json"},
            transport=transport,
            follow_redirects=True,
        )
        self._memo: dict[str, Any] = {}
        self._logger = logging.getLogger("newshelp.fetcher")

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/{name}.json"

    def is_memoized(self, name: str) -> bool:
        return name in self._memo

    async def fetch(self, name: str, memoize: bool = True) -> Any:
        if memoize and name in self._memo:
            log_event(self._logger, logging.DEBUG, "resource_cache_hit", resource=name)
            return self._memo[name]
        data = await self._request(name)
        if memoize:
            # concurrent first fetches of one name converge on the first stored value
            return self._memo.setdefault(name, data)
        return data

    async def fetch_uncached(self, name: str) -> Any:
        return await self.fetch(name, memoize=False)

    async def _request(self, name: str) -> Any:
        url = self.url_for(name)
        log_event(self._logger, logging.DEBUG, "resource_fetch", resource=name, url=url)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "resource_unavailable",
                resource=name,
                timeout_ms=self.timeout_ms,
            )
            raise ResourceUnavailable(name, timed_out=True, reason=str(exc)) from exc
        except httpx.HTTPError as exc:
            log_event(
                self._logger, logging.WARNING, "resource_unavailable", resource=name, error=str(exc)
            )
            raise ResourceUnavailable(name, reason=str(exc)) from exc

        if not response.is_success:
            log_event(
                self._logger,
                logging.WARNING if response.status_code != 404 else logging.INFO,
                "resource_unavailable",
                resource=name,
                status=response.status_code,
            )
            raise ResourceUnavailable(name, status=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            log_event(
                self._logger, logging.WARNING, "resource_unavailable", resource=name, error="invalid_json"
            )
            raise ResourceUnavailable(
                name, status=response.status_code, reason="invalid_json"
            ) from exc
        log_event(self._logger, logging.DEBUG, "resource_fetched", resource=name)
        return data

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
