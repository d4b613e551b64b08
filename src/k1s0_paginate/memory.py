"""InMemoryCollection 実装"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from .exceptions import PaginateError, PaginateErrorCodes
from .executor import QueryBuilder, QueryExecutor
from .operators import apply_projection, apply_sort, matches, parse_projection, parse_sort


class Document:
    """lean でない場合に返されるドキュメントオブジェクト。"""

    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data

    def __getattr__(self, name: str) -> Any:
        data = self.__dict__.get("_data", {})
        try:
            return data[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Document({self._data!r})"

    @property
    def id(self) -> str:
        """_id の文字列表現。"""
        return str(self._data["_id"])

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """展開済みの参照も含めて dict に変換する。"""
        return {
            key: value.to_dict() if isinstance(value, Document) else value
            for key, value in self._data.items()
        }


def _parse_populate(spec: Any) -> list[tuple[str, Any]]:
    if isinstance(spec, str):
        return [(path, None) for path in spec.split()]
    if isinstance(spec, Mapping) and "path" in spec:
        return [(path, spec.get("select")) for path in str(spec["path"]).split()]
    raise PaginateError(
        code=PaginateErrorCodes.INVALID_OPTIONS,
        message=f"unsupported populate spec: {spec!r}",
    )


def _as_count(name: str, n: Any) -> int:
    """skip / limit の値を整数に変換する。整数として扱えない値は PaginateError。"""
    if isinstance(n, float) and n.is_integer():
        return int(n)
    if isinstance(n, bool) or not isinstance(n, int):
        raise PaginateError(
            code=PaginateErrorCodes.INVALID_OPTIONS,
            message=f"{name} must be an integer, got {n!r}",
        )
    return n


class InMemoryQuery(QueryBuilder):
    """InMemoryCollection に対する検索クエリ。"""

    def __init__(self, collection: InMemoryCollection, filter: Mapping[str, Any]) -> None:
        self._collection = collection
        self._filter = dict(filter)
        self._select: Any = None
        self._sort: Any = None
        self._skip = 0
        self._limit = 0
        self._lean = False
        self._populate: list[tuple[str, Any]] = []

    def select(self, spec: Any) -> InMemoryQuery:
        self._select = spec
        return self

    def sort(self, spec: Any) -> InMemoryQuery:
        self._sort = spec
        return self

    def skip(self, n: int) -> InMemoryQuery:
        count = _as_count("skip", n)
        if count < 0:
            raise PaginateError(
                code=PaginateErrorCodes.INVALID_OPTIONS,
                message=f"skip must be non-negative, got {n}",
            )
        self._skip = count
        return self

    def limit(self, n: int) -> InMemoryQuery:
        # 0 は上限なし。負の値は絶対値を上限とする
        self._limit = abs(_as_count("limit", n))
        return self

    def lean(self, flag: bool = True) -> InMemoryQuery:
        self._lean = flag
        return self

    def populate(self, spec: Any) -> InMemoryQuery:
        self._populate.extend(_parse_populate(spec))
        return self

    async def exec(self) -> list[Any]:
        records = self._collection._scan(self._filter)
        apply_sort(records, parse_sort(self._sort))
        records = records[self._skip :]
        if self._limit:
            records = records[: self._limit]

        include, exclude = parse_projection(self._select)
        records = [apply_projection(record, include, exclude) for record in records]

        for path, select in self._populate:
            target = self._collection.reference(path)
            for record in records:
                if path in record:
                    record[path] = self._expand(target, record[path], select)

        if self._lean:
            return records
        return [Document(record) for record in records]

    def _expand(self, target: InMemoryCollection, value: Any, select: Any) -> Any:
        if isinstance(value, list):
            return [self._expand(target, item, select) for item in value]
        found = target._lookup(value)
        if found is None:
            return None
        include, exclude = parse_projection(select)
        expanded = apply_projection(found, include, exclude)
        return expanded if self._lean else Document(expanded)


class InMemoryCollection(QueryExecutor):
    """テスト用インメモリドキュメントコレクション。

    references はフィールドパスと参照先コレクションの対応で、populate で使う。
    """

    def __init__(
        self,
        name: str,
        references: Mapping[str, InMemoryCollection] | None = None,
    ) -> None:
        self.name = name
        self._references: dict[str, InMemoryCollection] = dict(references or {})
        self._documents: list[dict[str, Any]] = []

    async def insert(self, data: Mapping[str, Any]) -> Document:
        """ドキュメントを追加する。_id がなければ採番する。"""
        record = copy.deepcopy(dict(data))
        record.setdefault("_id", uuid.uuid4())
        self._documents.append(record)
        return Document(copy.deepcopy(record))

    async def insert_many(self, items: Iterable[Mapping[str, Any]]) -> list[Document]:
        return [await self.insert(item) for item in items]

    async def get(self, doc_id: Any) -> Document | None:
        found = self._lookup(doc_id)
        return Document(found) if found is not None else None

    def find(self, filter: Mapping[str, Any] | None = None) -> InMemoryQuery:
        return InMemoryQuery(self, filter or {})

    async def count_documents(self, filter: Mapping[str, Any] | None = None) -> int:
        return sum(1 for record in self._documents if matches(record, filter or {}))

    def reference(self, path: str) -> InMemoryCollection:
        """path が参照するコレクションを返す。"""
        try:
            return self._references[path]
        except KeyError:
            raise PaginateError(
                code=PaginateErrorCodes.UNKNOWN_REFERENCE,
                message=f"{self.name}.{path} does not reference a collection",
            ) from None

    def _scan(self, filter: Mapping[str, Any]) -> list[dict[str, Any]]:
        return [copy.deepcopy(record) for record in self._documents if matches(record, filter)]

    def _lookup(self, doc_id: Any) -> dict[str, Any] | None:
        for record in self._documents:
            if record["_id"] == doc_id:
                return copy.deepcopy(record)
        return None
