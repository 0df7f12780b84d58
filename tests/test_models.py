import pytest

from newshelp.fetcher import MetadataMissing
from newshelp.models import (
    decode_meta,
    decode_raw_item,
    decode_rows,
    decode_tag,
)


def test_decode_raw_item_maps_wire_names():
    item = decode_raw_item(
        {
            "id": 12,
            "source": 3,
            "title": "Title",
            "article": "Body",
            "cats": [1, "2", None],
            "imgUrl": "https://img.example/a.png",
            "cluster_id": "7",
            "created_at": "2025-01-01T00:00:00Z",
            "guid": "g",
            "objective": 7,
        }
    )
    assert item.source == "3"
    assert item.cats == [1, 2]
    assert item.img_url == "https://img.example/a.png"
    assert item.cluster_id == 7


def test_decode_tag_defaults():
    tag = decode_tag({"id": 4, "tag": "World"})
    assert tag.order_by == 0
    assert tag.parent == []
    assert tag.desc == ""


def test_decode_rows_skips_bad_rows_and_payloads():
    rows = decode_rows([{"id": 1}, {"title": "no id"}, "junk", {"id": "x"}], decode_raw_item, "r")
    assert [row.id for row in rows] == [1]
    assert decode_rows({"not": "a list"}, decode_raw_item, "r") == []


def test_decode_meta_requires_tables():
    meta = decode_meta({"generated_at": "now", "tables": {"news_raw": {"latest_id": 5}, "bad": {}}})
    assert meta.latest_id("news_raw") == 5
    assert "bad" not in meta.tables
    with pytest.raises(MetadataMissing):
        decode_meta([])
