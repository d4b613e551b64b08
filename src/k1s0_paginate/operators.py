"""インメモリクエリの条件評価・射影・ソート"""

from __future__ import annotations

import re
import uuid
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from .exceptions import PaginateError, PaginateErrorCodes

_MISSING = object()

_ASCENDING = {1, "1", "asc", "ascending"}
_DESCENDING = {-1, "-1", "desc", "descending"}


def get_path(doc: Mapping[str, Any], path: str) -> Any:
    """ドット区切りのパスで値を取得する。存在しなければ _MISSING。"""
    node: Any = doc
    for part in path.split("."):
        if isinstance(node, Mapping) and part in node:
            node = node[part]
        else:
            return _MISSING
    return node


def _equals(value: Any, expected: Any) -> bool:
    if value is _MISSING:
        return expected is None
    # 配列フィールドは要素のいずれかに一致すればよい
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return bool(value == expected)


def _compare(value: Any, arg: Any, op: str) -> bool:
    if value is _MISSING or value is None:
        return False
    try:
        if op == "$gt":
            return bool(value > arg)
        if op == "$gte":
            return bool(value >= arg)
        if op == "$lt":
            return bool(value < arg)
        return bool(value <= arg)
    except TypeError:
        return False


def _apply_operator(op: str, value: Any, arg: Any) -> bool:
    if op == "$eq":
        return _equals(value, arg)
    if op == "$ne":
        return not _equals(value, arg)
    if op in ("$gt", "$gte", "$lt", "$lte"):
        return _compare(value, arg, op)
    if op == "$in":
        return any(_equals(value, candidate) for candidate in arg)
    if op == "$nin":
        return not any(_equals(value, candidate) for candidate in arg)
    if op == "$exists":
        return (value is not _MISSING) == bool(arg)
    if op == "$regex":
        return isinstance(value, str) and re.search(arg, value) is not None
    raise PaginateError(
        code=PaginateErrorCodes.UNSUPPORTED_OPERATOR,
        message=f"unsupported query operator: {op}",
    )


def _is_operator_expression(cond: Any) -> bool:
    return isinstance(cond, Mapping) and bool(cond) and all(
        isinstance(key, str) and key.startswith("$") for key in cond
    )


def matches(doc: Mapping[str, Any], filter: Mapping[str, Any]) -> bool:
    """doc が filter の条件をすべて満たすか判定する。"""
    for key, cond in filter.items():
        if key == "$and":
            if not all(matches(doc, sub) for sub in cond):
                return False
        elif key == "$or":
            if not any(matches(doc, sub) for sub in cond):
                return False
        elif key == "$nor":
            if any(matches(doc, sub) for sub in cond):
                return False
        elif key.startswith("$"):
            raise PaginateError(
                code=PaginateErrorCodes.UNSUPPORTED_OPERATOR,
                message=f"unsupported query operator: {key}",
            )
        else:
            value = get_path(doc, key)
            if _is_operator_expression(cond):
                if not all(_apply_operator(op, value, arg) for op, arg in cond.items()):
                    return False
            elif not _equals(value, cond):
                return False
    return True


def parse_projection(spec: Any) -> tuple[set[str], set[str]]:
    """select 指定を (含めるフィールド, 除外するフィールド) に変換する。

    文字列は空白区切りで、先頭が "-" のフィールドは除外。
    辞書は値が真なら含める、偽なら除外。
    """
    if spec is None:
        return set(), set()
    if isinstance(spec, str):
        fields = spec.split()
        include = {f for f in fields if not f.startswith("-")}
        exclude = {f[1:] for f in fields if f.startswith("-")}
        return include, exclude
    if isinstance(spec, Mapping):
        include = {k for k, v in spec.items() if v}
        exclude = {k for k, v in spec.items() if not v}
        return include, exclude
    raise PaginateError(
        code=PaginateErrorCodes.INVALID_OPTIONS,
        message=f"unsupported select spec: {spec!r}",
    )


def apply_projection(
    record: dict[str, Any], include: set[str], exclude: set[str]
) -> dict[str, Any]:
    """トップレベルのフィールドに射影を適用した新しい辞書を返す。"""
    include_top = {path.split(".")[0] for path in include}
    exclude_top = {path.split(".")[0] for path in exclude}
    if include_top:
        # _id は明示的に除外しない限り常に含める
        keep = include_top | ({"_id"} - exclude_top)
        return {k: v for k, v in record.items() if k in keep}
    if exclude_top:
        return {k: v for k, v in record.items() if k not in exclude_top}
    return dict(record)


def _direction(value: Any) -> int:
    normalized = value.lower() if isinstance(value, str) else value
    if normalized in _ASCENDING:
        return 1
    if normalized in _DESCENDING:
        return -1
    raise PaginateError(
        code=PaginateErrorCodes.INVALID_OPTIONS,
        message=f"invalid sort direction: {value!r}",
    )


def parse_sort(spec: Any) -> list[tuple[str, int]]:
    """sort 指定を (パス, 方向) のリストに変換する。方向は 1 か -1。"""
    if spec is None:
        return []
    if isinstance(spec, str):
        keys = []
        for field in spec.split():
            if field.startswith("-"):
                keys.append((field[1:], -1))
            else:
                keys.append((field.lstrip("+"), 1))
        return keys
    if isinstance(spec, Mapping):
        return [(path, _direction(direction)) for path, direction in spec.items()]
    if isinstance(spec, (list, tuple)):
        return [(path, _direction(direction)) for path, direction in spec]
    raise PaginateError(
        code=PaginateErrorCodes.INVALID_OPTIONS,
        message=f"unsupported sort spec: {spec!r}",
    )


def _sort_key(value: Any) -> tuple[int, Any]:
    """型ごとの順位と、同じ型の中で比較できる値の組を返す。

    型の順位は MongoDB の BSON 比較順に合わせる:
    None < 数値 < 文字列 < オブジェクト < 配列 < バイナリ < ID < 真偽値 < 日時 < 正規表現
    """
    # 未設定と None は最小値として扱う
    if value is _MISSING or value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (7, value)
    if isinstance(value, (int, float, Decimal)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, Mapping):
        return (3, tuple((str(k), _sort_key(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return (4, tuple(_sort_key(item) for item in value))
    if isinstance(value, (bytes, bytearray)):
        return (5, bytes(value))
    if isinstance(value, uuid.UUID):
        return (6, value)
    if isinstance(value, datetime):
        return (8, value.timestamp())
    if isinstance(value, date):
        return (8, datetime.combine(value, time.min).timestamp())
    if isinstance(value, re.Pattern):
        return (9, str(value.pattern))
    return (10, (type(value).__name__, repr(value)))


def apply_sort(records: list[dict[str, Any]], keys: list[tuple[str, int]]) -> None:
    """records をその場でソートする。同値の要素は元の順序を保つ。"""
    for path, direction in reversed(keys):
        records.sort(
            key=lambda record: _sort_key(get_path(record, path)),
            reverse=direction < 0,
        )
