"""paginate テスト共通フィクスチャ"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from k1s0_paginate import InMemoryCollection

AUTHOR_NAME = "Arthur Conan Doyle"
BOOK_COUNT = 100


@pytest.fixture
async def authors() -> InMemoryCollection:
    collection = InMemoryCollection("authors")
    await collection.insert({"name": AUTHOR_NAME})
    return collection


@pytest.fixture
async def books(authors: InMemoryCollection) -> InMemoryCollection:
    """Book #1 〜 Book #100 の 100 冊。date は番号順に増加する。"""
    collection = InMemoryCollection("books", references={"author": authors})
    author_id = (await authors.find({}).lean().exec())[0]["_id"]
    base = datetime.now(timezone.utc)
    await collection.insert_many(
        {
            "title": f"Book #{i}",
            "date": base + timedelta(milliseconds=i),
            "author": author_id,
        }
        for i in range(1, BOOK_COUNT + 1)
    )
    return collection


def _make_executor(docs: list[Any] | None = None, total: int = 0) -> MagicMock:
    """チェーン呼び出しを記録するモック QueryExecutor を返す。"""
    builder = MagicMock()
    for name in ("select", "sort", "skip", "limit", "lean", "populate"):
        getattr(builder, name).return_value = builder
    builder.exec = AsyncMock(return_value=docs or [])
    executor = MagicMock()
    executor.find.return_value = builder
    executor.count_documents = AsyncMock(return_value=total)
    return executor


@pytest.fixture
def make_executor() -> Callable[..., MagicMock]:
    return _make_executor
