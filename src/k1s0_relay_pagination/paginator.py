"""Relay 形式のカーソルページング"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Mapping
from typing import Any

from .config import PaginationConfig
from .cursor import build_cursor, encode_cursor
from .keyset import build_query, build_range_predicate
from .page import Edge, Page, PageInfo
from .params import NormalizedParams, normalize_direction_params
from .predicate import MATCH_ALL, And, Comparison, Or, Predicate, Raw, from_mongo, to_mongo
from .sort import SortInput
from .store import Document, DocumentStore, Projection

logger = logging.getLogger(__name__)

FilterInput = Predicate | Mapping[str, Any] | None


def _as_predicate(filter: FilterInput) -> Predicate:
    if filter is None:
        return MATCH_ALL
    if isinstance(filter, (Comparison, And, Or, Raw)):
        return filter
    return from_mongo(filter)


async def _with_total(
    documents: Coroutine[Any, Any, list[Document]],
    total: Coroutine[Any, Any, int] | None,
) -> tuple[list[Document], int | None]:
    if total is None:
        return await documents, None
    # 件数取得はページ取得と独立しているので並行に発行する。
    # 片方が失敗したらもう片方はキャンセルし、元の例外をそのまま送出する
    try:
        async with asyncio.TaskGroup() as group:
            fetched = group.create_task(documents)
            count = group.create_task(total)
    except BaseExceptionGroup as e:
        raise e.exceptions[0] from None
    return fetched.result(), count.result()


def _assemble(
    documents: list[Document],
    params: NormalizedParams,
    *,
    after: str | None,
    before: str | None,
    total_count: int | None,
) -> Page[Document]:
    # limit + 1 件目が存在すれば、その向きにまだ続きがある
    has_more = len(documents) > params.limit
    desired = documents[: params.limit]
    if params.paginating_backwards:
        desired.reverse()

    edges = [
        Edge(cursor=encode_cursor(build_cursor(document, params.sort)), node=document)
        for document in desired
    ]

    if params.paginating_backwards:
        has_previous_page = has_more
        has_next_page = bool(before)
    else:
        has_previous_page = bool(after)
        has_next_page = has_more

    logger.debug(
        "Assembled page",
        extra={"edges": len(edges), "has_more": has_more, "backwards": params.paginating_backwards},
    )
    return Page(
        edges=edges,
        page_info=PageInfo(
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
            has_previous_page=has_previous_page,
            has_next_page=has_next_page,
            total_count=total_count,
        ),
    )


async def paginate(
    store: DocumentStore,
    *,
    first: int | None = None,
    after: str | None = None,
    last: int | None = None,
    before: str | None = None,
    filter: FilterInput = None,
    sort: SortInput = None,
    projection: Projection | None = None,
    with_total_count: bool = False,
    config: PaginationConfig | None = None,
) -> Page[Document]:
    """store.find を 1 回呼び出して 1 ページ分の結果を返す。

    Args:
        store: 問い合わせ先のデータストア
        first: 前方ページングの件数（既定 20、1 未満は 1 に丸める）
        after: 前方ページングの開始カーソル（このカーソルより後ろを返す）
        last: 後方ページングの件数。指定されると first/after より優先される
        before: 後方ページングの開始カーソル（このカーソルより前を返す）
        filter: 述語ツリーまたは MongoDB 形式のフィルタ
        sort: フィールドから方向への順序付きマッピング。タイブレーカーは自動で末尾に追加される
        projection: 返却フィールドの指定。ソートフィールドを除外するとカーソルが壊れる
        with_total_count: True なら filter に一致する総件数を並行して取得する
        config: ページング設定

    Returns:
        呼び出し元のソート順に並んだエッジとページ情報

    Raises:
        InvalidCursorError: after/before がデコードできない場合
        InvalidParametersError: strict_direction 有効時に前方・後方の引数が混在した場合
    """
    params = normalize_direction_params(
        first=first, after=after, last=last, before=before, sort=sort, config=config
    )
    query = _as_predicate(filter)

    documents, total_count = await _with_total(
        store.find(
            build_query(query, params.sort, params.cursor),
            params.sort,
            params.limit + 1,
            projection,
        ),
        store.count(query) if with_total_count else None,
    )
    return _assemble(documents, params, after=after, before=before, total_count=total_count)


async def aggregate_paginated(
    store: DocumentStore,
    pipeline: list[dict[str, Any]],
    *,
    first: int | None = None,
    after: str | None = None,
    last: int | None = None,
    before: str | None = None,
    sort: SortInput = None,
    with_total_count: bool = False,
    config: PaginationConfig | None = None,
) -> Page[Document]:
    """集計パイプラインの結果をページングする。

    pipeline の後ろにカーソル位置の $match・$sort・$limit を追加して実行する。
    ソートフィールドはパイプライン出力上のフィールドを指す。
    """
    params = normalize_direction_params(
        first=first, after=after, last=last, before=before, sort=sort, config=config
    )

    stages = list(pipeline)
    if params.cursor is not None:
        stages.append({"$match": to_mongo(build_range_predicate(params.sort, params.cursor))})
    stages.append({"$sort": dict(params.sort.to_mongo())})
    stages.append({"$limit": params.limit + 1})

    total: Coroutine[Any, Any, int] | None = None
    if with_total_count:
        total = _count_pipeline(store, pipeline)

    documents, total_count = await _with_total(store.aggregate(stages), total)
    return _assemble(documents, params, after=after, before=before, total_count=total_count)


async def _count_pipeline(store: DocumentStore, pipeline: list[dict[str, Any]]) -> int:
    result = await store.aggregate([*pipeline, {"$count": "total"}])
    return result[0]["total"] if result else 0
