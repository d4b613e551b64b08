"""paginate データモデル"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import PaginateError, PaginateErrorCodes

T = TypeVar("T")

DEFAULT_LIMIT = 10


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce_number(value: Any) -> Any:
    """数値文字列は数値に変換し、それ以外はそのまま返す。"""
    if not isinstance(value, str):
        return value
    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            continue
    return value


class PaginateOptions(BaseModel):
    """ページネーションのオプション。

    select / sort / populate はそのまま QueryExecutor に渡す。
    想定外の型の値は拒否せず、limit / lean / lean_with_id はデフォルトに戻し、
    page / offset はそのまま QueryExecutor まで渡す。
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    select: Any = None
    sort: Any = None
    populate: Any = None
    lean: bool = False
    lean_with_id: bool = Field(default=True, alias="leanWithId")
    limit: int | float = DEFAULT_LIMIT
    offset: Any = None
    page: Any = None

    @field_validator("lean", mode="before")
    @classmethod
    def coerce_lean(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("lean_with_id", mode="before")
    @classmethod
    def coerce_lean_with_id(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else True

    @field_validator("limit", mode="before")
    @classmethod
    def coerce_limit(cls, value: Any) -> int | float:
        return value if _is_number(value) else DEFAULT_LIMIT

    @field_validator("offset", "page", mode="before")
    @classmethod
    def coerce_position(cls, value: Any) -> Any:
        return _coerce_number(value)

    def merged(
        self, override: PaginateOptions | Mapping[str, Any] | None
    ) -> PaginateOptions:
        """override で明示的に指定されたキーを上書きした新しいオプションを返す。

        override が辞書でも PaginateOptions でもない場合は PaginateError。
        """
        if override is None:
            return self
        if not isinstance(override, PaginateOptions):
            try:
                override = PaginateOptions.model_validate(override)
            except ValidationError as e:
                raise PaginateError(
                    code=PaginateErrorCodes.INVALID_OPTIONS,
                    message=f"Invalid paginate options: {e}",
                    cause=e,
                ) from e
        updates = {name: getattr(override, name) for name in override.model_fields_set}
        return self.model_copy(update=updates)


@dataclass
class PaginateResult(Generic[T]):
    """ページネーション結果。

    offset はオフセット指定時のみ、page / pages はページ指定時のみ設定される。
    """

    docs: list[T]
    total: int
    limit: int | float
    offset: Any = None
    page: Any = None
    pages: int | float | None = None

    def to_dict(self) -> dict[str, Any]:
        """未設定のキーを除いた結果辞書を返す。"""
        result: dict[str, Any] = {
            "docs": self.docs,
            "total": self.total,
            "limit": self.limit,
        }
        if self.offset is not None:
            result["offset"] = self.offset
        if self.page is not None:
            result["page"] = self.page
            result["pages"] = self.pages
        return result
