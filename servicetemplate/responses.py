"""Helpers shared by the HTTP handlers: JSON responses, error mapping,
request decoding, path and pagination parameters, and opaque cursors."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any
from urllib.parse import urlencode
from uuid import UUID

from werkzeug.wrappers import Request, Response

from .domain import (
    PAGE_SIZE_DEFAULT,
    ConflictError,
    NotFoundError,
    PageCursor,
    PageInput,
    ValidationError,
)
from .jsonapi import CONTENT_TYPE, Error, ErrorDocument

_log = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")
_RAW_URL_BASE64 = re.compile(r"[A-Za-z0-9_-]*")
_INT64_MAX = 2**63 - 1
_JSON_WHITESPACE = " \t\n\r"

AFTER_PARAM = "page[after]"
BEFORE_PARAM = "page[before]"
SIZE_PARAM = "page[size]"


class RequestError(Exception):
    """The request is malformed; answered with a 400 response."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    @property
    def response(self) -> Response:
        return bad_request(self.detail)


def write_json(status: int, payload: Any) -> Response:
    """Encode a payload as a JSON:API response with the given status."""
    data = payload.to_dict() if hasattr(payload, "to_dict") else payload
    body = json.dumps(data, ensure_ascii=False) + "\n"
    return Response(body, status=status, content_type=CONTENT_TYPE)


def bad_request(detail: str) -> Response:
    """A 400 error document carrying the given detail."""
    return write_json(
        400,
        ErrorDocument(errors=[Error(status="400", title="Bad Request", detail=detail)]),
    )


def map_domain_error(err: BaseException) -> tuple[int, Error]:
    """Map a domain error to an HTTP status and a JSON:API error object."""
    if isinstance(err, NotFoundError):
        return 404, Error(status="404", title="Not Found", detail=str(err))
    if isinstance(err, ConflictError):
        return 409, Error(status="409", title="Conflict", detail=str(err))
    if isinstance(err, ValidationError):
        return 422, Error(status="422", title="Unprocessable Entity", detail=str(err))
    return 500, Error(status="500", title="Internal Server Error")


def error_response(err: BaseException) -> Response:
    """Build the error response for an error raised by a service."""
    status, api_error = map_domain_error(err)
    if status == 500:
        _log.error("internal error: %s", err, exc_info=err)
    return write_json(status, ErrorDocument(errors=[api_error]))


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def decode_body(request: Request) -> dict[str, Any]:
    """Decode a JSON:API request document and return its resource data.

    The returned mapping always holds ``id``, ``type`` and an ``attributes``
    mapping. Raises RequestError on malformed JSON or a missing ``data`` member.
    """
    text = request.get_data().decode("utf-8", errors="replace").lstrip(_JSON_WHITESPACE)
    try:
        doc, _ = json.JSONDecoder().raw_decode(text)
    except json.JSONDecodeError as err:
        raise RequestError(str(err) if text else "EOF") from None
    if doc is None:
        raise RequestError("data is required")
    if not isinstance(doc, dict):
        raise RequestError(f"json: cannot unmarshal {_kind(doc)} into document")
    data = doc.get("data")
    if data is None:
        raise RequestError("data is required")
    if not isinstance(data, dict):
        raise RequestError(f"json: cannot unmarshal {_kind(data)} into field data")
    for key in ("id", "type"):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise RequestError(f"json: cannot unmarshal {_kind(value)} into field data.{key}")
    attributes = data.get("attributes")
    if attributes is None:
        attributes = {}
    elif not isinstance(attributes, dict):
        raise RequestError(f"json: cannot unmarshal {_kind(attributes)} into field data.attributes")
    return {"id": data.get("id") or "", "type": data.get("type") or "", "attributes": attributes}


def path_uuid(value: str, detail: str) -> UUID:
    """Parse a UUID taken from a path segment; raise RequestError(detail) if malformed."""
    try:
        return UUID(value)
    except (ValueError, TypeError, AttributeError):
        raise RequestError(detail) from None


def parse_page(request: Request) -> PageInput:
    """Read page[size], page[after] and page[before] from the query string."""
    query = request.args
    size = PAGE_SIZE_DEFAULT
    raw_size = query.get(SIZE_PARAM, "")
    if raw_size:
        if not _INTEGER.fullmatch(raw_size) or not 1 <= int(raw_size) <= _INT64_MAX:
            raise RequestError("page[size] must be a positive integer")
        size = int(raw_size)

    has_after = AFTER_PARAM in query
    has_before = BEFORE_PARAM in query
    if has_after and has_before:
        raise RequestError("page[after] and page[before] are mutually exclusive")

    after = before = None
    if has_after:
        after = decode_cursor(query.get(AFTER_PARAM, ""))
        if after is None:
            raise RequestError("page[after] is invalid")
    if has_before:
        before = decode_cursor(query.get(BEFORE_PARAM, ""))
        if before is None:
            raise RequestError("page[before] is invalid")
    return PageInput(size=size, after=after, before=before)


def pagination_url(request: Request, param: str, cursor: PageCursor | None) -> str | None:
    """Absolute URL of the same request with ``param`` set to the cursor.

    Both direction parameters are dropped first; query keys come out sorted.
    """
    if cursor is None:
        return None
    pairs = [
        (key, value)
        for key, value in request.args.items(multi=True)
        if key not in (AFTER_PARAM, BEFORE_PARAM)
    ]
    pairs.append((param, encode_cursor(cursor)))
    pairs.sort(key=lambda pair: pair[0])
    return f"{request.base_url}?{urlencode(pairs)}"


def encode_cursor(cursor: PageCursor) -> str:
    """Encode a cursor as unpadded URL-safe base64 of a small JSON object."""
    raw = json.dumps({"i": cursor.id}, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_cursor(value: str) -> PageCursor | None:
    """Decode a cursor made by encode_cursor; None if it is invalid."""
    if not _RAW_URL_BASE64.fullmatch(value) or len(value) % 4 == 1:
        return None
    try:
        raw = base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
        payload = json.loads(raw)
    except (binascii.Error, ValueError):
        return None
    if payload is None:
        return None
    if not isinstance(payload, dict):
        return None
    if "i" in payload:
        ident = payload["i"]
    else:
        ident = next((v for k, v in payload.items() if k.lower() == "i"), None)
    if ident is None:
        return None
    if isinstance(ident, bool) or not isinstance(ident, int):
        return None
    if not 0 < ident <= _INT64_MAX:
        return None
    return PageCursor(ident)