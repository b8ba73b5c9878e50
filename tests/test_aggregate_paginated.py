"""aggregate_paginated のユニットテスト"""

from unittest.mock import AsyncMock

import pytest

from k1s0_relay_pagination import InMemoryDocumentStore, aggregate_paginated
from k1s0_relay_pagination.cursor import decode_cursor

SORT = {"createdAt": 1, "color": -1}


def make_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(
        [
            {"createdAt": "2020-03-20", "color": "green", "_id": 1},
            {"createdAt": "2020-03-21", "color": "green", "_id": 2},
            {"createdAt": "2020-03-22", "color": "green", "_id": 3},
            {"createdAt": "2020-03-22", "color": "blue", "_id": 4},
            {"createdAt": "2020-03-22", "color": "blue", "_id": 5},
            {"createdAt": "2020-03-22", "color": "amber", "_id": 6},
            {"createdAt": "2020-03-23", "color": "green", "_id": 7},
            {"createdAt": "2020-03-23", "color": "green", "_id": 8},
        ]
    )


def ids(page) -> list[int]:
    return [edge.node["_id"] for edge in page.edges]


@pytest.mark.asyncio
async def test_paginates_forwards_and_backwards() -> None:
    """前方・後方のページングで同じページが再現されること。"""
    store = make_store()

    page = await aggregate_paginated(store, [], first=3, sort=SORT)
    assert ids(page) == [1, 2, 3]
    assert page.page_info.has_previous_page is False
    assert page.page_info.has_next_page is True

    page = await aggregate_paginated(store, [], first=3, after=page.page_info.end_cursor, sort=SORT)
    assert ids(page) == [4, 5, 6]
    assert page.page_info.has_previous_page is True
    assert page.page_info.has_next_page is True

    page = await aggregate_paginated(store, [], first=3, after=page.page_info.end_cursor, sort=SORT)
    assert ids(page) == [7, 8]
    assert page.page_info.has_next_page is False

    page = await aggregate_paginated(store, [], last=3, before=page.page_info.start_cursor, sort=SORT)
    assert ids(page) == [4, 5, 6]
    assert page.page_info.has_previous_page is True
    assert page.page_info.has_next_page is True

    page = await aggregate_paginated(store, [], last=3, before=page.page_info.start_cursor, sort=SORT)
    assert ids(page) == [1, 2, 3]
    assert page.page_info.has_previous_page is False
    assert page.page_info.has_next_page is True


@pytest.mark.asyncio
async def test_cursor_contains_sort_fields_in_order() -> None:
    """カーソルがソートフィールドとタイブレーカーをこの順で持つこと。"""
    page = await aggregate_paginated(make_store(), [], first=1, sort=SORT)
    cursor = decode_cursor(page.page_info.end_cursor)
    assert cursor == {"createdAt": "2020-03-20", "color": "green", "_id": 1}
    assert list(cursor) == ["createdAt", "color", "_id"]


@pytest.mark.asyncio
async def test_pipeline_runs_before_pagination_stages() -> None:
    """呼び出し元のパイプラインの後ろに $match / $sort / $limit が追加されること。"""
    store = make_store()
    store.aggregate = AsyncMock(wraps=store.aggregate)  # type: ignore[method-assign]

    first = await aggregate_paginated(store, [{"$match": {"color": "green"}}], first=2)
    await aggregate_paginated(
        store, [{"$match": {"color": "green"}}], first=2, after=first.page_info.end_cursor
    )

    assert store.aggregate.await_args_list[0].args[0] == [
        {"$match": {"color": "green"}},
        {"$sort": {"_id": 1}},
        {"$limit": 3},
    ]
    assert store.aggregate.await_args_list[1].args[0] == [
        {"$match": {"color": "green"}},
        {"$match": {"$or": [{"_id": {"$gt": 2}}]}},
        {"$sort": {"_id": 1}},
        {"$limit": 3},
    ]


@pytest.mark.asyncio
async def test_behaves_well_without_results() -> None:
    """一致するドキュメントが無い場合。"""
    store = InMemoryDocumentStore([{"code": 1}, {"code": 2}, {"code": 3}])
    page = await aggregate_paginated(store, [{"$match": {"nonExistentField": True}}])
    assert page.edges == []
    assert page.to_dict()["pageInfo"] == {
        "startCursor": None,
        "endCursor": None,
        "hasPreviousPage": False,
        "hasNextPage": False,
    }


@pytest.mark.asyncio
async def test_dot_notation_in_sort() -> None:
    """ソートにドット記法を使えること。"""
    store = InMemoryDocumentStore(
        [{"info": {"code": 2}}, {"info": {"code": 1}}, {"info": {"code": 3}}]
    )
    page = await aggregate_paginated(store, [], sort={"info.code": 1})
    assert [edge.node["info"]["code"] for edge in page.edges] == [1, 2, 3]


@pytest.mark.asyncio
async def test_total_count() -> None:
    """with_total_count でパイプライン出力の総件数が返ること。"""
    store = make_store()
    page = await aggregate_paginated(
        store, [{"$match": {"color": "green"}}], first=1, with_total_count=True
    )
    assert len(page.edges) == 1
    assert page.page_info.total_count == 5

    empty = await aggregate_paginated(
        store, [{"$match": {"color": "red"}}], with_total_count=True
    )
    assert empty.page_info.total_count == 0
