"""k1s0 relay_pagination library."""

from .config import PaginationConfig, load_config
from .cursor import CursorObject, build_cursor, decode_cursor, encode_cursor
from .exceptions import (
    InvalidCursorError,
    InvalidParametersError,
    PaginationError,
    PaginationErrorCodes,
)
from .keyset import build_query, build_range_predicate
from .memory import InMemoryDocumentStore
from .mongo import MongoDocumentStore
from .page import Edge, Page, PageInfo
from .paginator import aggregate_paginated, paginate
from .params import NormalizedParams, normalize_direction_params, sanitize_limit
from .predicate import (
    MATCH_ALL,
    And,
    Comparison,
    Operator,
    Or,
    Predicate,
    Raw,
    from_mongo,
    matches,
    to_mongo,
)
from .sort import SortDirection, SortSpec
from .store import DocumentStore

__all__ = [
    "And",
    "Comparison",
    "CursorObject",
    "DocumentStore",
    "Edge",
    "InMemoryDocumentStore",
    "InvalidCursorError",
    "InvalidParametersError",
    "MATCH_ALL",
    "MongoDocumentStore",
    "NormalizedParams",
    "Operator",
    "Or",
    "Page",
    "PageInfo",
    "PaginationConfig",
    "PaginationError",
    "PaginationErrorCodes",
    "Predicate",
    "Raw",
    "SortDirection",
    "SortSpec",
    "aggregate_paginated",
    "build_cursor",
    "build_query",
    "build_range_predicate",
    "decode_cursor",
    "encode_cursor",
    "from_mongo",
    "load_config",
    "matches",
    "normalize_direction_params",
    "paginate",
    "sanitize_limit",
    "to_mongo",
]
