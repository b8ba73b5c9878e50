"""ドット記法によるドキュメントフィールドアクセス"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class _Missing:
    """フィールドが存在しないことを表す番兵。"""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def lookup(document: Mapping[str, Any], path: str) -> Any:
    """``a.b.c`` 形式のパスで値を取り出す。存在しなければ MISSING を返す。"""
    node: Any = document
    for part in path.split("."):
        if isinstance(node, Mapping):
            if part not in node:
                return MISSING
            node = node[part]
        elif isinstance(node, list) and part.isdigit():
            index = int(part)
            if index >= len(node):
                return MISSING
            node = node[index]
        else:
            return MISSING
    return node


def get_path(document: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """lookup と同じだが、存在しないフィールドは default を返す。"""
    value = lookup(document, path)
    return default if value is MISSING else value


def _set_path(target: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    node = target
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


def _delete_path(target: dict[str, Any], path: str) -> None:
    parts = path.split(".")
    node: Any = target
    for part in parts[:-1]:
        node = node.get(part) if isinstance(node, dict) else None
        if node is None:
            return
    if isinstance(node, dict):
        node.pop(parts[-1], None)


def _copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _copy(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copy(item) for item in value]
    return value


def apply_projection(
    document: Mapping[str, Any],
    projection: Mapping[str, Any] | list[str] | None,
) -> dict[str, Any]:
    """MongoDB の find projection と同じ規則でフィールドを絞り込む。

    包含指定（1/True）と除外指定（0/False）は混在できない。ただし ``_id`` のみ例外で、
    包含指定中でも明示的に除外できる。``_id`` は除外しない限り常に含まれる。
    """
    if not projection:
        return _copy(document)
    if isinstance(projection, list):
        projection = {field: 1 for field in projection}

    include_id = bool(projection.get("_id", True))
    others = {field: bool(flag) for field, flag in projection.items() if field != "_id"}
    # {"_id": 1} 単独は _id のみの包含指定
    inclusive = any(others.values()) if others else "_id" in projection and include_id

    if inclusive:
        result: dict[str, Any] = {}
        if include_id and "_id" in document:
            result["_id"] = _copy(document["_id"])
        for field, flag in others.items():
            if not flag:
                continue
            value = lookup(document, field)
            if value is not MISSING:
                _set_path(result, field, _copy(value))
        return result

    result = _copy(document)
    for field in others:
        _delete_path(result, field)
    if not include_id:
        result.pop("_id", None)
    return result
