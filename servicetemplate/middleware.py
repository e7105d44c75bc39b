"""WSGI middleware: access logging, panic recovery and request ids."""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
import uuid
from collections.abc import Callable, Iterable

from .jsonapi import CONTENT_TYPE, Error, ErrorDocument

REQUEST_ID_HEADER = "X-Request-Id"
REQUEST_ID_ENVIRON_KEY = "servicetemplate.request_id"

_log = logging.getLogger(__name__)
_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]


def logger(app: WSGIApp) -> WSGIApp:
    """Log method, path, status and duration of every request."""

    def middleware(environ, start_response):
        start = time.perf_counter()
        status = 200

        def capture(status_line, headers, exc_info=None):
            nonlocal status
            status = int(status_line.split(None, 1)[0])
            return start_response(status_line, headers, exc_info)

        result = app(environ, capture)
        duration = time.perf_counter() - start
        method = environ.get("REQUEST_METHOD", "")
        path = environ.get("PATH_INFO", "")
        _log.info(
            "request method=%s path=%s status=%d duration=%.6fs",
            method,
            path,
            status,
            duration,
            extra={"method": method, "path": path, "status": status, "duration": duration},
        )
        return result

    return middleware


def recovery(app: WSGIApp) -> WSGIApp:
    """Turn unhandled exceptions into a JSON:API 500 response."""

    def middleware(environ, start_response):
        try:
            return app(environ, start_response)
        except Exception as exc:
            _log.error("panic recovered: %r", exc, exc_info=True)
            doc = ErrorDocument(errors=[Error(status="500", title="Internal Server Error")])
            body = (json.dumps(doc.to_dict()) + "\n").encode()
            start_response(
                "500 Internal Server Error",
                [("Content-Type", CONTENT_TYPE), ("Content-Length", str(len(body)))],
                sys.exc_info(),
            )
            return [body]

    return middleware


def request_id(app: WSGIApp) -> WSGIApp:
    """Take the request id from the incoming header or generate one, and echo it."""

    def middleware(environ, start_response):
        rid = environ.get("HTTP_X_REQUEST_ID", "") or str(uuid.uuid4())
        environ[REQUEST_ID_ENVIRON_KEY] = rid

        def with_header(status_line, headers, exc_info=None):
            headers = [(k, v) for k, v in headers if k.lower() != REQUEST_ID_HEADER.lower()]
            headers.append((REQUEST_ID_HEADER, rid))
            return start_response(status_line, headers, exc_info)

        token = _request_id.set(rid)
        try:
            return app(environ, with_header)
        finally:
            _request_id.reset(token)

    return middleware


def request_id_from_context() -> str:
    """Return the request id of the request being handled, or an empty string."""
    return _request_id.get()


class RequestIDFilter(logging.Filter):
    """Adds a request_id attribute to records logged while a request is handled."""

    def filter(self, record: logging.LogRecord) -> bool:
        rid = request_id_from_context()
        if rid:
            record.request_id = rid
        return True