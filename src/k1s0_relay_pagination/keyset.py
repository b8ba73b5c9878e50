"""カーソル位置より後ろの行を選択する範囲述語（keyset / seek 法）"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .exceptions import InvalidCursorError
from .predicate import And, Comparison, Operator, Or, Predicate, all_of
from .sort import SortDirection, SortSpec


def build_range_predicate(sort: SortSpec, cursor: Mapping[str, Any]) -> Or:
    """sort の順序でカーソル行より厳密に後ろにある行を選ぶ述語を返す。

    sort が (f1..fk)、カーソル値が (v1..vk) のとき、i 番目の節は
    f1..f(i-1) がカーソル値と等しく、かつ fi が vi より後ろ
    （昇順なら $gt、降順なら $lt）である行を選ぶ。k 個の節の論理和が
    辞書式順序で「カーソルより後ろ」と一致する。
    """
    missing = [field for field in sort.fields if field not in cursor]
    if missing:
        raise InvalidCursorError(
            repr(dict(cursor)),
            f"cursor does not match sort, missing fields: {', '.join(missing)}",
        )

    clauses: list[Predicate] = []
    equalities: list[Comparison] = []
    for field, direction in sort:
        op = Operator.GT if direction is SortDirection.ASCENDING else Operator.LT
        clause = [*equalities, Comparison(field, op, cursor[field])]
        clauses.append(clause[0] if len(clause) == 1 else And(tuple(clause)))
        equalities.append(Comparison(field, Operator.EQ, cursor[field]))
    return Or(tuple(clauses))


def build_query(
    query: Predicate,
    sort: SortSpec,
    cursor: Mapping[str, Any] | None,
) -> Predicate:
    """呼び出し元のフィルタにカーソル位置の範囲条件を AND で追加する。"""
    if cursor is None:
        return query
    return all_of(query, build_range_predicate(sort, cursor))
