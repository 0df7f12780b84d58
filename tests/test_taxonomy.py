from newshelp.models import Tag
from newshelp.taxonomy import child_tags, root_tags, tag_by_slug, tag_lineage


def _tags():
    return [
        Tag(id=1, tag="World", desc="", order_by=2, parent=[]),
        Tag(id=2, tag="Business", desc="", order_by=1, parent=[]),
        Tag(id=3, tag="Europe", desc="", order_by=0, parent=[1]),
        Tag(id=4, tag="Markets & Trade", desc="", order_by=0, parent=[2, 1]),
        Tag(id=5, tag="Spain", desc="", order_by=0, parent=[3]),
    ]


def test_roots_and_children_sorted_by_order():
    tags = _tags()
    assert [tag.id for tag in root_tags(tags)] == [2, 1]
    assert [tag.id for tag in child_tags(tags, 1)] == [3, 4]
    assert [tag.id for tag in child_tags(tags, 5)] == []


def test_tag_by_slug():
    assert tag_by_slug(_tags(), "markets-trade").id == 4
    assert tag_by_slug(_tags(), "nowhere") is None


def test_tag_lineage_is_root_first():
    assert [tag.id for tag in tag_lineage(_tags(), 5)] == [1, 3, 5]
    assert tag_lineage(_tags(), 99) == []


def test_tag_lineage_stops_on_cycles():
    tags = [
        Tag(id=1, tag="A", desc="", order_by=0, parent=[2]),
        Tag(id=2, tag="B", desc="", order_by=0, parent=[1]),
    ]
    assert [tag.id for tag in tag_lineage(tags, 1)] == [2, 1]
