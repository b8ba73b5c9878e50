"""ソート指定の型定義"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from typing import Any, Union

from .exceptions import PaginationError, PaginationErrorCodes


class SortDirection(Enum):
    """ソート方向。"""

    ASCENDING = 1
    DESCENDING = -1

    def invert(self) -> SortDirection:
        """逆方向を返す。"""
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING

    @classmethod
    def parse(cls, value: Any) -> SortDirection:
        """1 / -1 / "asc" / "desc" などをソート方向に変換する。"""
        if isinstance(value, SortDirection):
            return value
        if isinstance(value, str):
            direction = _DIRECTION_NAMES.get(value.lower())
            if direction is not None:
                return direction
        # bool は int のサブクラスなので先に除外する
        elif isinstance(value, int) and not isinstance(value, bool):
            if value == 1:
                return cls.ASCENDING
            if value == -1:
                return cls.DESCENDING
        raise PaginationError(
            code=PaginationErrorCodes.INVALID_SORT,
            message=f"invalid sort direction: {value!r}",
        )


_DIRECTION_NAMES = {
    "asc": SortDirection.ASCENDING,
    "ascending": SortDirection.ASCENDING,
    "desc": SortDirection.DESCENDING,
    "descending": SortDirection.DESCENDING,
}

SortInput = Union["SortSpec", Mapping[str, Any], Iterable[tuple[str, Any]], None]


class SortSpec:
    """フィールドパスからソート方向への順序付きマッピング（不変）。

    挿入順が優先順位を表す。先頭が第一ソートキー。
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[tuple[str, Any]] = ()) -> None:
        parsed: list[tuple[str, SortDirection]] = []
        seen: set[str] = set()
        for field, direction in items:
            if not isinstance(field, str) or not field:
                raise PaginationError(
                    code=PaginationErrorCodes.INVALID_SORT,
                    message=f"invalid sort field: {field!r}",
                )
            if field in seen:
                raise PaginationError(
                    code=PaginationErrorCodes.INVALID_SORT,
                    message=f"duplicate sort field: {field}",
                )
            seen.add(field)
            parsed.append((field, SortDirection.parse(direction)))
        self._items: tuple[tuple[str, SortDirection], ...] = tuple(parsed)

    @classmethod
    def of(cls, sort: SortInput) -> SortSpec:
        """dict / (field, direction) のリスト / None から SortSpec を生成する。"""
        if sort is None:
            return cls()
        if isinstance(sort, SortSpec):
            return sort
        if isinstance(sort, Mapping):
            return cls(sort.items())
        return cls(sort)

    @property
    def fields(self) -> list[str]:
        return [field for field, _ in self._items]

    def items(self) -> list[tuple[str, SortDirection]]:
        return list(self._items)

    def direction_of(self, field: str) -> SortDirection | None:
        for name, direction in self._items:
            if name == field:
                return direction
        return None

    def with_tie_breaker(self, field: str = "_id") -> SortSpec:
        """タイブレーカーが無ければ昇順で末尾に追加した新しい SortSpec を返す。"""
        if field in self:
            return self
        return SortSpec([*self._items, (field, SortDirection.ASCENDING)])

    def invert(self) -> SortSpec:
        """全フィールドの方向を反転した新しい SortSpec を返す。"""
        return SortSpec((field, direction.invert()) for field, direction in self._items)

    def to_mongo(self) -> list[tuple[str, int]]:
        """pymongo の sort 引数形式に変換する。"""
        return [(field, direction.value) for field, direction in self._items]

    def __contains__(self, field: object) -> bool:
        return any(name == field for name, _ in self._items)

    def __iter__(self) -> Iterator[tuple[str, SortDirection]]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SortSpec):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        inner = ", ".join(f"{field!r}: {direction.value}" for field, direction in self._items)
        return f"SortSpec({{{inner}}})"
