"""デフォルトオプションの設定ファイル読み込み"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import PaginateError, PaginateErrorCodes
from .models import PaginateOptions


def _load_file(path: Path, section: str | None) -> PaginateOptions:
    """1 ファイル分のオプションを読み込む。section のキーがなければ空とみなす。"""
    try:
        document: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise PaginateError(
            code=PaginateErrorCodes.READ_FILE,
            message=f"Failed to read options file: {path}",
            cause=e,
        ) from e
    except yaml.YAMLError as e:
        raise PaginateError(
            code=PaginateErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e

    if section is not None and document is not None:
        if not isinstance(document, dict):
            raise PaginateError(
                code=PaginateErrorCodes.INVALID_OPTIONS,
                message=f"Expected a mapping at the top of {path}",
            )
        document = document.get(section)

    try:
        return PaginateOptions.model_validate(document or {})
    except ValidationError as e:
        raise PaginateError(
            code=PaginateErrorCodes.INVALID_OPTIONS,
            message=f"Options validation failed: {path}: {e}",
            cause=e,
        ) from e


def load_options(
    base_path: Path,
    env_path: Path | None = None,
    section: str | None = None,
) -> PaginateOptions:
    """YAML ファイルからデフォルトオプションを読み込む。

    base_path: ベース設定ファイルパス（必須）
    env_path: 環境別設定ファイルパス（オプション）。存在する場合は
        そこで指定されたキーだけがベースを上書きする。
    section: アプリケーション設定の一部として書かれている場合のキー名。

    例（section="paginate"）:
        paginate:
          limit: 20
          lean: true
          sort: "-date"
    """
    options = _load_file(base_path, section)
    if env_path is not None and env_path.exists():
        options = options.merged(_load_file(env_path, section))
    return options
