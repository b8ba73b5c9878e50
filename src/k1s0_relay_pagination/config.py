"""ページング設定（pydantic BaseModel）と YAML ローダー"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .exceptions import PaginationError, PaginationErrorCodes


class PaginationConfig(BaseModel):
    """ページング動作の設定。

    既定値のままで first/last の既定件数 20・最小 1・上限なし、
    タイブレーカーは ``_id`` となる。
    """

    default_limit: int = Field(default=20, ge=1)
    min_limit: int = Field(default=1, ge=1)
    max_limit: int | None = Field(default=None, ge=1)
    tie_breaker_field: str = Field(default="_id", min_length=1)
    strict_direction: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> PaginationConfig:
        if self.max_limit is not None and self.max_limit < self.min_limit:
            raise ValueError(
                f"max_limit ({self.max_limit}) must not be below min_limit ({self.min_limit})"
            )
        if self.default_limit < self.min_limit:
            raise ValueError(
                f"default_limit ({self.default_limit}) must not be below min_limit ({self.min_limit})"
            )
        if self.max_limit is not None and self.default_limit > self.max_limit:
            raise ValueError(
                f"default_limit ({self.default_limit}) must not exceed max_limit ({self.max_limit})"
            )
        return self


DEFAULT_CONFIG = PaginationConfig()


def _read_yaml(path: Path) -> dict[str, Any]:
    """YAML ファイルを読み込む。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PaginationError(
            code=PaginationErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise PaginationError(
            code=PaginationErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise PaginationError(
            code=PaginationErrorCodes.PARSE_YAML,
            message=f"Config root must be a mapping: {path}",
        )
    return data


def load_config(path: Path) -> PaginationConfig:
    """設定ファイルを読み込んで PaginationConfig を返す。

    トップレベルの ``pagination:`` セクションがあればそれを、無ければファイル全体を使う。
    """
    data = _read_yaml(path)
    section = data.get("pagination", data)
    try:
        return PaginationConfig.model_validate(section)
    except ValidationError as e:
        raise PaginationError(
            code=PaginationErrorCodes.VALIDATION,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
