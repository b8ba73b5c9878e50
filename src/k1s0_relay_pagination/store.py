"""DocumentStore 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from .predicate import Predicate
from .sort import SortSpec

Document = dict[str, Any]
Projection = Mapping[str, Any] | list[str]


class DocumentStore(ABC):
    """ソート済みドキュメント列を返すデータストアの抽象基底クラス。

    クエリ実行・同時実行制御・タイムアウトは実装側の責務。
    実装固有の例外はそのまま呼び出し元へ伝播させる。
    """

    @abstractmethod
    async def find(
        self,
        filter: Predicate,
        sort: SortSpec,
        limit: int,
        projection: Projection | None = None,
    ) -> list[Document]:
        """filter に一致するドキュメントを sort 順に最大 limit 件返す。"""
        ...

    @abstractmethod
    async def count(self, filter: Predicate) -> int:
        """filter に一致するドキュメント数を返す。"""
        ...

    @abstractmethod
    async def aggregate(self, pipeline: list[dict[str, Any]]) -> list[Document]:
        """集計パイプラインを実行して結果を返す。"""
        ...
