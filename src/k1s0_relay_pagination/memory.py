"""InMemoryDocumentStore 実装"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from bson import ObjectId

from .exceptions import PaginationError, PaginationErrorCodes
from .fields import apply_projection, get_path
from .predicate import Predicate, bson_sort_key, from_mongo, matches
from .sort import SortDirection, SortSpec
from .store import Document, DocumentStore, Projection


def _to_bson_precision(value: Any) -> Any:
    """BSON の日時はミリ秒精度なので、保存時にマイクロ秒を切り捨てる。"""
    if isinstance(value, datetime):
        return value.replace(microsecond=value.microsecond // 1000 * 1000)
    if isinstance(value, Mapping):
        return {key: _to_bson_precision(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_bson_precision(item) for item in value]
    return value


def sort_documents(documents: Iterable[Document], sort: SortSpec) -> list[Document]:
    """MongoDB と同じ型間順序で複数キーの安定ソートを行う。"""
    result = list(documents)
    # 優先度の低いキーから順に安定ソートを重ねる
    for field, direction in reversed(sort.items()):
        result.sort(
            key=lambda doc, f=field: bson_sort_key(get_path(doc, f)),
            reverse=direction is SortDirection.DESCENDING,
        )
    return result


class InMemoryDocumentStore(DocumentStore):
    """テスト用インメモリドキュメントストア。"""

    def __init__(self, documents: Iterable[Mapping[str, Any]] | None = None) -> None:
        self._documents: list[Document] = []
        if documents is not None:
            self.insert_many(documents)

    def insert_one(self, document: Mapping[str, Any]) -> Any:
        """ドキュメントを追加する。_id が無ければ ObjectId を採番する。

        日時はミリ秒に切り捨てて保存する。
        """
        stored = _to_bson_precision(document)
        if "_id" not in stored:
            stored["_id"] = ObjectId()
        if any(bson_sort_key(d["_id"]) == bson_sort_key(stored["_id"]) for d in self._documents):
            raise ValueError(f"duplicate _id: {stored['_id']!r}")
        self._documents.append(stored)
        return stored["_id"]

    def insert_many(self, documents: Iterable[Mapping[str, Any]]) -> list[Any]:
        return [self.insert_one(document) for document in documents]

    def all_documents(self) -> list[Document]:
        return [apply_projection(d, None) for d in self._documents]

    async def find(
        self,
        filter: Predicate,
        sort: SortSpec,
        limit: int,
        projection: Projection | None = None,
    ) -> list[Document]:
        matched = [d for d in self._documents if matches(filter, d)]
        ordered = sort_documents(matched, sort)
        if limit > 0:
            ordered = ordered[:limit]
        return [apply_projection(d, projection) for d in ordered]

    async def count(self, filter: Predicate) -> int:
        return sum(1 for d in self._documents if matches(filter, d))

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> list[Document]:
        documents = [apply_projection(d, None) for d in self._documents]
        for stage in pipeline:
            documents = self._apply_stage(documents, stage)
        return documents

    def _apply_stage(self, documents: list[Document], stage: Mapping[str, Any]) -> list[Document]:
        if len(stage) != 1:
            raise PaginationError(
                code=PaginationErrorCodes.UNSUPPORTED_STAGE,
                message=f"pipeline stage must have exactly one key: {list(stage)}",
            )
        name, spec = next(iter(stage.items()))
        if name == "$match":
            predicate = from_mongo(spec)
            return [d for d in documents if matches(predicate, d)]
        if name == "$sort":
            return sort_documents(documents, SortSpec.of(spec))
        if name == "$limit":
            return documents[:spec]
        if name == "$skip":
            return documents[spec:]
        if name == "$project":
            return [apply_projection(d, spec) for d in documents]
        if name == "$count":
            # MongoDB と同様、入力が空なら結果も空
            return [{spec: len(documents)}] if documents else []
        raise PaginationError(
            code=PaginationErrorCodes.UNSUPPORTED_STAGE,
            message=f"unsupported pipeline stage: {name}",
        )
