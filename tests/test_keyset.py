"""範囲述語（keyset）のユニットテスト"""

import itertools

import pytest

from k1s0_relay_pagination.cursor import build_cursor
from k1s0_relay_pagination.exceptions import InvalidCursorError
from k1s0_relay_pagination.keyset import build_query, build_range_predicate
from k1s0_relay_pagination.memory import sort_documents
from k1s0_relay_pagination.predicate import MATCH_ALL, And, Comparison, Operator, matches, to_mongo
from k1s0_relay_pagination.sort import SortSpec


def test_generates_the_correct_query() -> None:
    """昇順・降順が混在するソートの述語形状。"""
    sort = SortSpec.of({"createdAt": 1, "color": -1, "_id": 1})
    cursor = {"createdAt": "2020-03-22", "color": "blue", "_id": 4}

    assert to_mongo(build_range_predicate(sort, cursor)) == {
        "$or": [
            {"createdAt": {"$gt": "2020-03-22"}},
            {"createdAt": {"$eq": "2020-03-22"}, "color": {"$lt": "blue"}},
            {"createdAt": {"$eq": "2020-03-22"}, "color": {"$eq": "blue"}, "_id": {"$gt": 4}},
        ]
    }


def test_single_field_sort() -> None:
    """ソートが 1 フィールドなら節も 1 つ。"""
    predicate = build_range_predicate(SortSpec.of({"_id": -1}), {"_id": 10})
    assert to_mongo(predicate) == {"$or": [{"_id": {"$lt": 10}}]}


def test_cursor_missing_sort_field() -> None:
    """別のソートで作られたカーソルは InvalidCursorError。"""
    sort = SortSpec.of({"createdAt": 1, "_id": 1})
    with pytest.raises(InvalidCursorError):
        build_range_predicate(sort, {"_id": 1})


def test_build_query_without_cursor() -> None:
    """カーソルが無ければ呼び出し元のフィルタをそのまま使うこと。"""
    query = Comparison("color", Operator.EQ, "blue")
    assert build_query(query, SortSpec.of({"_id": 1}), None) is query


def test_build_query_combines_with_filter() -> None:
    """カーソルの範囲条件は呼び出し元のフィルタと AND で結合されること。"""
    query = Comparison("color", Operator.EQ, "blue")
    sort = SortSpec.of({"_id": 1})
    combined = build_query(query, sort, {"_id": 3})
    assert isinstance(combined, And)
    assert combined.children[0] is query
    assert to_mongo(combined) == {"$and": [{"color": {"$eq": "blue"}}, {"$or": [{"_id": {"$gt": 3}}]}]}
    assert to_mongo(build_query(MATCH_ALL, sort, {"_id": 3})) == {"$or": [{"_id": {"$gt": 3}}]}


def _dataset() -> list[dict]:
    rows = []
    for index, (a, b) in enumerate(itertools.product([1, 2, 2], ["x", "y", "y"])):
        rows.append({"_id": index, "a": a, "b": b})
    return rows


@pytest.mark.parametrize(
    "sort",
    [
        {"a": 1, "b": 1, "_id": 1},
        {"a": 1, "b": -1, "_id": 1},
        {"a": -1, "b": 1, "_id": 1},
        {"a": -1, "b": -1, "_id": -1},
        {"b": -1, "_id": 1},
        {"_id": -1},
    ],
)
def test_seek_matches_exactly_the_rows_after_the_cursor(sort: dict) -> None:
    """全行について、述語がカーソル行より後ろの行とだけ一致すること。"""
    spec = SortSpec.of(sort)
    rows = _dataset()
    ordered = sort_documents(rows, spec)
    position = {row["_id"]: index for index, row in enumerate(ordered)}

    for row in rows:
        predicate = build_range_predicate(spec, build_cursor(row, spec))
        selected = {other["_id"] for other in rows if matches(predicate, other)}
        expected = {other["_id"] for other in rows if position[other["_id"]] > position[row["_id"]]}
        assert selected == expected, f"cursor row {row}"
