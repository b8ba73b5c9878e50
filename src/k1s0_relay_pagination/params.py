"""前方／後方ページング引数の正規化"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import DEFAULT_CONFIG, PaginationConfig
from .cursor import CursorObject, decode_cursor
from .exceptions import InvalidParametersError
from .sort import SortInput, SortSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedParams:
    """データストアへの問い合わせに使う、向きの曖昧さを解消した引数。"""

    limit: int
    cursor: CursorObject | None
    sort: SortSpec
    paginating_backwards: bool


def sanitize_limit(limit: int | None, config: PaginationConfig | None = None) -> int:
    """None は既定値に、最小値未満は最小値に丸める。エラーにはしない。"""
    config = config or DEFAULT_CONFIG
    if limit is None:
        return config.default_limit
    limit = max(config.min_limit, limit)
    if config.max_limit is not None:
        limit = min(config.max_limit, limit)
    return limit


def normalize_direction_params(
    *,
    first: int | None = None,
    after: str | None = None,
    last: int | None = None,
    before: str | None = None,
    sort: SortInput = None,
    config: PaginationConfig | None = None,
) -> NormalizedParams:
    """first/after（前方）と last/before（後方）を単一の向きに解決する。

    後方ページングは「逆順ソートでの前方ページング」として扱う。
    last が指定されていれば後方が優先される。strict_direction が有効な場合は
    前方・後方の引数が混在するとエラーにする。
    """
    config = config or DEFAULT_CONFIG
    forward_given = first is not None or after is not None
    backward_given = last is not None or before is not None
    if forward_given and backward_given:
        if config.strict_direction:
            raise InvalidParametersError(
                "first/after and last/before cannot be combined in a single request"
            )
        logger.warning(
            "Both forward and backward pagination parameters given",
            extra={"first": first, "last": last},
        )

    base_sort = SortSpec.of(sort).with_tie_breaker(config.tie_breaker_field)

    if last is not None:
        params = NormalizedParams(
            limit=sanitize_limit(last, config),
            cursor=decode_cursor(before) if before else None,
            sort=base_sort.invert(),
            paginating_backwards=True,
        )
    else:
        params = NormalizedParams(
            limit=sanitize_limit(first, config),
            cursor=decode_cursor(after) if after else None,
            sort=base_sort,
            paginating_backwards=False,
        )

    logger.debug(
        "Resolved pagination parameters",
        extra={
            "limit": params.limit,
            "has_cursor": params.cursor is not None,
            "backwards": params.paginating_backwards,
        },
    )
    return params
