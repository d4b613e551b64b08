"""paginate ライブラリの例外型定義"""

from __future__ import annotations


class PaginateError(Exception):
    """paginate ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class PaginateErrorCodes:
    """PaginateError のエラーコード定数。"""

    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    INVALID_OPTIONS: str = "INVALID_OPTIONS"
    INVALID_EXECUTOR: str = "INVALID_EXECUTOR"
    UNSUPPORTED_OPERATOR: str = "UNSUPPORTED_OPERATOR"
    UNKNOWN_REFERENCE: str = "UNKNOWN_REFERENCE"
