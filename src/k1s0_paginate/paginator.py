"""Paginator — オフセット / ページ指定のページネーション"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .exceptions import PaginateError, PaginateErrorCodes
from .executor import QueryExecutor
from .models import PaginateOptions, PaginateResult

Callback = Callable[[Exception | None, PaginateResult[Any]], Any]

logger = logging.getLogger(__name__)


def _compute_pages(total: int, limit: int) -> int | float:
    """総ページ数を計算する。0 にはならない。"""
    if limit == 0:
        return math.inf if total else 1
    return math.ceil(total / limit) or 1


async def _empty() -> list[Any]:
    return []


def _page_skip(page: Any, limit: int | float) -> int | float:
    """ページ番号を読み飛ばし件数に変換する。数値でなければ NaN を返す。"""
    try:
        return (page - 1) * limit
    except TypeError:
        return math.nan


async def _gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """aws を並行に実行する。いずれかが失敗したら残りをキャンセルして例外を送出する。"""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        raise


def _with_id(docs: list[Any]) -> list[Any]:
    return [{**doc, "id": str(doc["_id"])} for doc in docs]


class Paginator:
    """QueryExecutor にページネーションを追加する。

    defaults は全呼び出しに共通のオプションで、呼び出しごとのオプションが優先される。
    """

    def __init__(
        self,
        executor: QueryExecutor,
        defaults: PaginateOptions | Mapping[str, Any] | None = None,
    ) -> None:
        self._executor = executor
        self._defaults = PaginateOptions().merged(defaults)

    @property
    def defaults(self) -> PaginateOptions:
        return self._defaults

    async def paginate(
        self,
        filter: Mapping[str, Any] | None = None,
        options: PaginateOptions | Mapping[str, Any] | None = None,
        callback: Callback | None = None,
    ) -> PaginateResult[Any]:
        """filter に一致するドキュメントを 1 ページ分取得する。

        Args:
            filter: 検索条件。None の場合は全件
            options: 呼び出しごとのオプション
            callback: (None, result) で呼び出されるコールバック（オプション）

        Returns:
            PaginateResult

        クエリの失敗はそのまま例外として送出し、callback には渡さない。
        """
        filter = filter or {}
        opts = self._defaults.merged(options)
        limit = opts.limit
        page: Any = None
        offset: Any = None

        # offset=0 は未指定と同じ扱い
        if opts.offset:
            offset = opts.offset
            skip = offset
        elif opts.page:
            page = opts.page
            skip = _page_skip(page, limit)
        else:
            page = 1
            offset = 0
            skip = 0

        query = (
            self._executor.find(filter)
            .select(opts.select)
            .sort(opts.sort)
            .skip(skip)
            .limit(limit)
            .lean(opts.lean)
        )
        if opts.populate:
            specs = opts.populate if isinstance(opts.populate, (list, tuple)) else [opts.populate]
            for spec in specs:
                query.populate(spec)

        logger.debug(
            "Paginating query",
            extra={"skip": skip, "limit": limit, "page": page, "offset": offset},
        )

        docs_task: Awaitable[list[Any]] = query.exec() if limit else _empty()
        docs, total = await _gather_or_cancel(
            docs_task, self._executor.count_documents(filter)
        )
        if opts.lean and opts.lean_with_id:
            docs = _with_id(docs)

        result: PaginateResult[Any] = PaginateResult(
            docs=list(docs), total=total, limit=limit, offset=offset
        )
        if page is not None:
            result.page = page
            result.pages = _compute_pages(total, limit)

        logger.debug(
            "Paginated query",
            extra={"fetched": len(result.docs), "total": total},
        )

        if callback is not None:
            outcome = callback(None, result)
            if inspect.isawaitable(outcome):
                await outcome
        return result


def install(
    target: Any,
    defaults: PaginateOptions | Mapping[str, Any] | None = None,
) -> Paginator:
    """target に paginate 操作を登録する。

    target は find / count_documents を持つコレクションであること。
    登録後は target.paginate(filter, options, callback) で呼び出せる。
    """
    for name in ("find", "count_documents"):
        if not callable(getattr(target, name, None)):
            raise PaginateError(
                code=PaginateErrorCodes.INVALID_EXECUTOR,
                message=f"{type(target).__name__} does not provide {name}()",
            )
    paginator = Paginator(target, defaults)
    target.paginate = paginator.paginate
    return paginator
