"""述語ツリーと MongoDB クエリ式との相互変換"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from bson import Decimal128, ObjectId

from .exceptions import PaginationError, PaginationErrorCodes
from .fields import MISSING, lookup


class Operator(Enum):
    """比較演算子。値は MongoDB の演算子名。"""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"
    EXISTS = "$exists"


@dataclass(frozen=True)
class Comparison:
    """単一フィールドに対する比較条件。"""

    field: str
    op: Operator
    value: Any


@dataclass(frozen=True)
class And:
    """全ての子条件を満たす。子が空なら常に真。"""

    children: tuple[Predicate, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Or:
    """いずれかの子条件を満たす。"""

    children: tuple[Predicate, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Raw:
    """述語ツリーで表現しない MongoDB のクエリ式。

    $regex や $elemMatch などはそのままストアへ渡す。インメモリ評価はできない。
    """

    query: Mapping[str, Any]


Predicate = Union[Comparison, And, Or, Raw]

MATCH_ALL: Predicate = And()

_OPERATORS = {op.value: op for op in Operator}


def all_of(*predicates: Predicate) -> Predicate:
    """空条件を取り除いて And にまとめる。"""
    children = tuple(p for p in predicates if p != MATCH_ALL)
    if not children:
        return MATCH_ALL
    if len(children) == 1:
        return children[0]
    return And(children)


# =============================================================================
# MongoDB 形式への変換
# =============================================================================


def to_mongo(predicate: Predicate) -> dict[str, Any]:
    """述語ツリーを MongoDB のフィルタ式に変換する。"""
    if isinstance(predicate, Comparison):
        return {predicate.field: {predicate.op.value: predicate.value}}
    if isinstance(predicate, Raw):
        return dict(predicate.query)
    if isinstance(predicate, Or):
        return {"$or": [to_mongo(child) for child in predicate.children]}
    if not predicate.children:
        return {}
    if len(predicate.children) == 1:
        return to_mongo(predicate.children[0])
    # フィールドが重複しない比較の並びは 1 つのドキュメントにまとめる
    if all(isinstance(child, Comparison) for child in predicate.children):
        names = [child.field for child in predicate.children]  # type: ignore[union-attr]
        if len(set(names)) == len(names):
            merged: dict[str, Any] = {}
            for child in predicate.children:
                merged.update(to_mongo(child))
            return merged
    return {"$and": [to_mongo(child) for child in predicate.children]}


def from_mongo(query: Mapping[str, Any] | None) -> Predicate:
    """MongoDB のフィルタ式を述語ツリーに変換する。

    対応していない演算子は Raw として保持し、MongoDB へそのまま渡す。
    """
    if not query:
        return MATCH_ALL
    if not isinstance(query, Mapping):
        raise PaginationError(
            code=PaginationErrorCodes.INVALID_FILTER,
            message=f"filter must be a mapping, got {type(query).__name__}",
        )
    conditions: list[Predicate] = []
    for key, value in query.items():
        if key in ("$and", "$or"):
            if not isinstance(value, list) or not value:
                raise PaginationError(
                    code=PaginationErrorCodes.INVALID_FILTER,
                    message=f"{key} requires a non-empty list",
                )
            children = tuple(from_mongo(child) for child in value)
            conditions.append(And(children) if key == "$and" else Or(children))
        elif key.startswith("$"):
            conditions.append(Raw({key: value}))
        elif _is_operator_document(value):
            if any(op_name not in _OPERATORS for op_name in value):
                # 未対応の演算子を含むフィールド条件はまとめて素通しする
                conditions.append(Raw({key: value}))
                continue
            for op_name, operand in value.items():
                conditions.append(Comparison(key, _OPERATORS[op_name], operand))
        else:
            conditions.append(Comparison(key, Operator.EQ, value))
    if len(conditions) == 1:
        return conditions[0]
    return And(tuple(conditions))


def _is_operator_document(value: Any) -> bool:
    return (
        isinstance(value, Mapping)
        and len(value) > 0
        and all(isinstance(k, str) and k.startswith("$") for k in value)
    )


# =============================================================================
# インメモリ評価
# =============================================================================

# MongoDB の型間ソート順（MinKey/MaxKey など未対応の型は末尾）
_RANK_NULL = 1
_RANK_NUMBER = 2
_RANK_STRING = 3
_RANK_OBJECT = 4
_RANK_ARRAY = 5
_RANK_BINARY = 6
_RANK_OBJECT_ID = 7
_RANK_BOOL = 8
_RANK_DATE = 9
_RANK_OTHER = 100


def _normalize_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def bson_sort_key(value: Any) -> tuple[int, Any]:
    """MongoDB の比較順序に従ったソートキーを返す。欠損値は null と同じ扱い。"""
    if value is None or value is MISSING:
        return (_RANK_NULL, 0)
    if isinstance(value, bool):
        return (_RANK_BOOL, value)
    if isinstance(value, Decimal128):
        return (_RANK_NUMBER, value.to_decimal())
    if isinstance(value, (int, float, Decimal)):
        return (_RANK_NUMBER, value)
    if isinstance(value, str):
        return (_RANK_STRING, value)
    if isinstance(value, Mapping):
        return (_RANK_OBJECT, tuple((k, bson_sort_key(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return (_RANK_ARRAY, tuple(bson_sort_key(v) for v in value))
    if isinstance(value, uuid.UUID):
        return (_RANK_BINARY, (16, value.bytes))
    if isinstance(value, bytes):
        return (_RANK_BINARY, (len(value), value))
    if isinstance(value, ObjectId):
        return (_RANK_OBJECT_ID, value.binary)
    if isinstance(value, datetime):
        return (_RANK_DATE, _normalize_datetime(value))
    return (_RANK_OTHER, repr(value))


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, list) and not isinstance(expected, list):
        # 配列フィールドは要素のいずれかが一致すればよい
        return any(_equals(item, expected) for item in actual)
    return bson_sort_key(actual) == bson_sort_key(expected)


def _compare(actual: Any, op: Operator, expected: Any) -> bool:
    actual_rank, actual_key = bson_sort_key(actual)
    expected_rank, expected_key = bson_sort_key(expected)
    # 範囲比較は同じ型クラス同士でのみ成立する
    if actual_rank != expected_rank:
        return False
    if op is Operator.GT:
        return actual_key > expected_key
    if op is Operator.GTE:
        return actual_key >= expected_key
    if op is Operator.LT:
        return actual_key < expected_key
    return actual_key <= expected_key


def _matches_comparison(predicate: Comparison, document: Mapping[str, Any]) -> bool:
    actual = lookup(document, predicate.field)
    op = predicate.op
    if op is Operator.EXISTS:
        return (actual is not MISSING) == bool(predicate.value)
    if op is Operator.EQ:
        return _equals(actual, predicate.value)
    if op is Operator.NE:
        return not _equals(actual, predicate.value)
    if op is Operator.IN:
        return any(_equals(actual, candidate) for candidate in predicate.value)
    if op is Operator.NIN:
        return not any(_equals(actual, candidate) for candidate in predicate.value)
    return _compare(actual, op, predicate.value)


def matches(predicate: Predicate, document: Mapping[str, Any]) -> bool:
    """ドキュメントが述語を満たすか評価する。

    Raises:
        PaginationError: Raw を含む述語はインメモリで評価できない
    """
    if isinstance(predicate, Comparison):
        return _matches_comparison(predicate, document)
    if isinstance(predicate, Raw):
        raise PaginationError(
            code=PaginationErrorCodes.INVALID_FILTER,
            message=f"cannot evaluate query in memory: {dict(predicate.query)!r}",
        )
    if isinstance(predicate, Or):
        return any(matches(child, document) for child in predicate.children)
    return all(matches(child, document) for child in predicate.children)
