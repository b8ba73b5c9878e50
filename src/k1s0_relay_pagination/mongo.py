"""MongoDB コレクションを DocumentStore として扱うアダプタ"""

from __future__ import annotations

import inspect
from typing import Any

from .predicate import Predicate, to_mongo
from .sort import SortSpec
from .store import Document, DocumentStore, Projection


class MongoDocumentStore(DocumentStore):
    """pymongo の AsyncCollection（または Motor のコレクション）のアダプタ。

    ドライバの例外は変換せずにそのまま伝播させる。
    """

    def __init__(self, collection: Any) -> None:
        self._collection = collection

    @property
    def collection(self) -> Any:
        return self._collection

    async def find(
        self,
        filter: Predicate,
        sort: SortSpec,
        limit: int,
        projection: Projection | None = None,
    ) -> list[Document]:
        cursor = self._collection.find(to_mongo(filter), projection)
        if len(sort) > 0:
            cursor = cursor.sort(sort.to_mongo())
        cursor = cursor.limit(limit)
        return await cursor.to_list(length=limit)

    async def count(self, filter: Predicate) -> int:
        return await self._collection.count_documents(to_mongo(filter))

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> list[Document]:
        cursor = self._collection.aggregate(pipeline)
        # pymongo の AsyncCollection.aggregate はコルーチン、Motor はカーソルを直接返す
        if inspect.isawaitable(cursor):
            cursor = await cursor
        return await cursor.to_list(length=None)
