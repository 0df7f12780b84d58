import asyncio

import pytest

from newshelp.api import search_news
from newshelp.fetcher import MetadataMissing


def test_search_scans_only_recent_window(fake_api, make_session):
    fake_api.set_meta(news_raw=1234)
    for batch_id in range(0, 1300, 100):
        fake_api.add_raw_batch(batch_id, [batch_id + 1, batch_id + 2])

    async def scenario():
        async with make_session(static_limit=250) as session:
            return await search_news(session, "xyz123", limit=50)

    assert asyncio.run(scenario()) == []
    batch_requests = [name for name in fake_api.requests if name.startswith("news_raw.")]
    assert sorted(batch_requests) == ["news_raw.1000", "news_raw.1100", "news_raw.1200"]
    assert len(fake_api.requests) == 4


def test_search_is_case_insensitive_on_title_and_body(fake_api, make_session):
    fake_api.set_meta(news_raw=210)
    fake_api.add("news_raw.100", [
        fake_api.raw_row(150, title="Elections in Spain"),
        fake_api.raw_row(160, title="Weather", article="A cold ELECTION night"),
    ])
    fake_api.add("news_raw.200", [
        fake_api.raw_row(201, title="Sports"),
        fake_api.raw_row(205, title="election results"),
    ])

    async def scenario():
        async with make_session(static_limit=200) as session:
            return await search_news(session, "Election", limit=50)

    assert [item.id for item in asyncio.run(scenario())] == [150, 160, 205]


def test_search_truncates_to_limit(fake_api, make_session):
    fake_api.set_meta(news_raw=99)
    fake_api.add_raw_batch(0, [1, 2, 3, 4], title="match")

    async def scenario():
        async with make_session() as session:
            return await search_news(session, "match", limit=2)

    assert [item.id for item in asyncio.run(scenario())] == [1, 2]


def test_blank_query_fetches_nothing(fake_api, make_session):
    async def scenario():
        async with make_session() as session:
            return await search_news(session, "   ")

    assert asyncio.run(scenario()) == []
    assert fake_api.requests == []


def test_search_without_meta_is_fatal(fake_api, make_session):
    fake_api.fail("meta", 500)

    async def scenario():
        async with make_session() as session:
            return await search_news(session, "anything")

    with pytest.raises(MetadataMissing) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.status == 500
