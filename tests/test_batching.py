from newshelp.batching import (
    BATCH_SIZE,
    batch_of,
    batch_range,
    group_by_batch,
    recent_batch_ids,
    resource_name,
    search_window,
)


def test_batch_of_floors_to_batch_start():
    assert batch_of(0) == 0
    assert batch_of(99) == 0
    assert batch_of(100) == 100
    assert batch_of(207) == 200
    for item_id in (0, 1, 57, 99, 100, 101, 199, 1234, 99999):
        assert batch_of(item_id) == (item_id // 100) * 100


def test_batch_of_is_stable_within_batch():
    for item_id in (0, 150, 4321):
        start = batch_of(item_id)
        assert batch_of(start) == start
        for offset in (0, 1, 50, BATCH_SIZE - 1):
            assert batch_of(start + offset) == start
        assert batch_of(start + BATCH_SIZE) == start + BATCH_SIZE


def test_resource_name_uses_batch_start():
    assert resource_name("news_raw", 207) == "news_raw.200"
    assert resource_name("news_articles", 0) == "news_articles.0"


def test_group_by_batch_keeps_first_seen_order():
    groups = group_by_batch([120, 30, 10, 150, 5])
    assert list(groups) == [100, 0]
    assert groups[100] == [120, 150]
    assert groups[0] == [30, 10, 5]


def test_batch_range_clamps_at_zero():
    assert batch_range(-40, 57) == [0]
    assert batch_range(199, 201) == [100, 200]
    assert batch_range(300, 200) == []


def test_recent_batch_ids_walks_backward():
    assert recent_batch_ids(207, 2) == [200, 100]
    assert recent_batch_ids(57, 3) == [0]
    assert recent_batch_ids(57, 0) == []


def test_search_window_is_ascending_and_bounded():
    assert search_window(1234, 100) == [1200]
    assert search_window(1234, 250) == [1000, 1100, 1200]
    assert search_window(1234, 0) == []
