"""Cursor codec and cursor builder.

A cursor is the ordered mapping ``{sort field: value}`` taken from one result
document. It is serialized as relaxed MongoDB Extended JSON so that dates,
ObjectIds, UUIDs and decimals survive the round trip, then wrapped in URL-safe
base64 without padding.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Mapping
from typing import Any

from bson import json_util
from bson.binary import UuidRepresentation
from bson.errors import BSONError

from .exceptions import InvalidCursorError
from .fields import get_path
from .sort import SortInput, SortSpec

logger = logging.getLogger(__name__)

CursorObject = dict[str, Any]

_JSON_OPTIONS = json_util.RELAXED_JSON_OPTIONS.with_options(
    tz_aware=False,
    uuid_representation=UuidRepresentation.STANDARD,
)


def encode_cursor(cursor: Mapping[str, Any]) -> str:
    """Encode a cursor mapping into an opaque URL-safe token."""
    text = json_util.dumps(cursor, json_options=_JSON_OPTIONS, separators=(",", ":"))
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> CursorObject:
    """Decode a token produced by encode_cursor.

    Raises InvalidCursorError if the token is not valid base64, not valid
    Extended JSON, or does not hold a JSON object.

    Datetimes come back naive and in UTC, as pymongo returns them with its
    default ``tz_aware=False``. A timezone-aware value encoded into a cursor is
    converted to UTC and loses its tzinfo.
    """
    try:
        padded = token + "=" * (-len(token) % 4)
        raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
        decoded = json_util.loads(raw.decode("utf-8"), json_options=_JSON_OPTIONS)
    except (binascii.Error, ValueError, TypeError, KeyError, AttributeError, BSONError) as e:
        logger.warning("Rejected invalid cursor", extra={"error": str(e)})
        raise InvalidCursorError(token, "malformed token", cause=e) from e
    if not isinstance(decoded, dict):
        logger.warning("Rejected invalid cursor", extra={"error": "payload is not an object"})
        raise InvalidCursorError(token, "payload is not an object")
    return decoded


def build_cursor(document: Mapping[str, Any], sort: SortInput) -> CursorObject:
    """Extract the values of the sort fields from a document, in sort order.

    Dot-notation paths are resolved into nested documents. A missing field
    yields None, which is how MongoDB compares missing values.
    """
    spec = SortSpec.of(sort)
    return {field: get_path(document, field) for field in spec.fields}
