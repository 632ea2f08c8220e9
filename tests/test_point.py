from datetime import datetime, timezone

from tswire.point import Point, Tag, sort_tags, timestamp_ns, to_datetime, value


def test_sort_tags() -> None:
    tags = sort_tags([("region", "useast"), ("host", "server01")])
    assert tags == (Tag("host", "server01"), Tag("region", "useast"))
    assert tags[0].key == "host"
    assert tags[1].value == "useast"


def test_sort_tags_from_mapping() -> None:
    assert sort_tags({"b": "2", "a": "1"}) == (Tag("a", "1"), Tag("b", "2"))


def test_value() -> None:
    assert value(2.0) == {"value": 2.0}


def test_point_preserves_tag_order() -> None:
    pt = Point("cpu", value(2.0), tags=[("region", "uswest"), ("host", "server01")])
    assert pt.tags == (Tag("region", "uswest"), Tag("host", "server01"))


def test_point_time() -> None:
    now = datetime(2010, 1, 1, 0, 0, 1, 500, tzinfo=timezone.utc)
    pt = Point("cpu", value(0))
    assert not pt.has_time_set
    assert pt.time is None

    pt = pt.with_time(now)
    assert pt.has_time_set
    assert pt.time == 1262304001000500000

    # The epoch is a valid timestamp and not the same as an unset time.
    assert Point("cpu", value(0), time=0).has_time_set

    assert not pt.with_time(None).has_time_set


def test_timestamp_conversions() -> None:
    naive = datetime(1970, 1, 1, 0, 0, 1)
    assert timestamp_ns(naive) == 1_000_000_000
    assert to_datetime(1_000_001_999) == datetime(
        1970, 1, 1, 0, 0, 1, 1, tzinfo=timezone.utc
    )


def test_point_dict_round_trip() -> None:
    pt = Point("cpu", {"value": 1.5, "ok": True}, tags={"host": "a"}, time=10)
    assert Point.from_dict(pt.to_dict()) == pt


def test_with_tags() -> None:
    pt = Point("cpu", value(1), tags={"host": "a"}, time=10)
    retagged = pt.with_tags([("region", "uswest"), ("host", "b")])

    assert retagged.tags == (Tag("region", "uswest"), Tag("host", "b"))
    assert retagged.time == 10
    assert pt.tags == (Tag("host", "a"),)
