"""QueryExecutor / QueryBuilder 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class QueryBuilder(ABC):
    """検索クエリビルダー抽象基底クラス。

    exec 以外のメソッドは自身を返し、チェーンして呼び出せる。
    """

    @abstractmethod
    def select(self, spec: Any) -> QueryBuilder:
        """取得するフィールドを指定する。None の場合は全フィールド。"""
        ...

    @abstractmethod
    def sort(self, spec: Any) -> QueryBuilder:
        """並び順を指定する。None の場合は格納順。"""
        ...

    @abstractmethod
    def skip(self, n: int) -> QueryBuilder:
        """先頭から読み飛ばす件数を指定する。"""
        ...

    @abstractmethod
    def limit(self, n: int) -> QueryBuilder:
        """取得する最大件数を指定する。"""
        ...

    @abstractmethod
    def lean(self, flag: bool = True) -> QueryBuilder:
        """True の場合、結果をドキュメントオブジェクトではなく dict で返す。"""
        ...

    @abstractmethod
    def populate(self, spec: Any) -> QueryBuilder:
        """参照フィールドを参照先ドキュメントに展開する。複数回呼び出せる。"""
        ...

    @abstractmethod
    async def exec(self) -> list[Any]:
        """クエリを実行して結果を返す。"""
        ...


class QueryExecutor(ABC):
    """ドキュメントコレクションに対するクエリ実行の抽象基底クラス。"""

    @abstractmethod
    def find(self, filter: Mapping[str, Any]) -> QueryBuilder:
        """filter に一致するドキュメントを取得するクエリを返す。"""
        ...

    @abstractmethod
    async def count_documents(self, filter: Mapping[str, Any]) -> int:
        """filter に一致するドキュメント数を返す。"""
        ...
