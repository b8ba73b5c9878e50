"""relay_pagination ライブラリの例外型定義"""

from __future__ import annotations


class PaginationError(Exception):
    """relay_pagination ライブラリのエラー基底クラス。"""

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


class PaginationErrorCodes:
    """PaginationError のエラーコード定数。"""

    INVALID_CURSOR: str = "INVALID_CURSOR"
    INVALID_PARAMETERS: str = "INVALID_PARAMETERS"
    INVALID_SORT: str = "INVALID_SORT"
    INVALID_FILTER: str = "INVALID_FILTER"
    UNSUPPORTED_STAGE: str = "UNSUPPORTED_STAGE"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"


class InvalidCursorError(PaginationError):
    """カーソル文字列がデコードできない場合のエラー。"""

    def __init__(
        self,
        token: str,
        reason: str,
        cause: Exception | None = None,
    ) -> None:
        self.token = token
        super().__init__(
            code=PaginationErrorCodes.INVALID_CURSOR,
            message=f"invalid cursor: {reason}",
            cause=cause,
        )


class InvalidParametersError(PaginationError):
    """前方・後方のページング引数が同時に指定された場合のエラー（strict モードのみ）。"""

    def __init__(self, message: str) -> None:
        super().__init__(code=PaginationErrorCodes.INVALID_PARAMETERS, message=message)
