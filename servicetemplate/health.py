"""Liveness and readiness endpoints."""

from __future__ import annotations

import json
from typing import Any, Protocol

from werkzeug.wrappers import Request, Response


class Pinger(Protocol):
    def ping(self) -> None: ...


def _json(status: int, payload: dict[str, Any]) -> Response:
    body = json.dumps(payload, sort_keys=True) + "\n"
    return Response(body, status=status, content_type="application/json")


class HealthHandler:
    """Reports whether the process is alive and whether the database answers."""

    def __init__(self, db: Pinger) -> None:
        self._db = db

    def live(self, request: Request) -> Response:
        return _json(200, {"status": "ok"})

    def ready(self, request: Request) -> Response:
        try:
            self._db.ping()
        except Exception as err:
            return _json(503, {"status": "unavailable", "detail": str(err)})
        return _json(200, {"status": "ok"})