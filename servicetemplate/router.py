"""Routes HTTP requests to the handlers and wraps them in middleware."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.routing import Map, Rule
from werkzeug.wrappers import Request, Response

from .middleware import logger, recovery, request_id

ROUTE_ENVIRON_KEY = "servicetemplate.route"


class Router:
    """A WSGI app dispatching method and path patterns to handler methods."""

    def __init__(self, health_handler: Any, user_handler: Any, account_handler: Any) -> None:
        routes: list[tuple[str, str, str, Callable]] = [
            ("GET", "/health/live", "/health/live", health_handler.live),
            ("GET", "/health/ready", "/health/ready", health_handler.ready),
            ("GET", "/users", "/users", user_handler.list),
            ("POST", "/users", "/users", user_handler.create),
            ("GET", "/users/{id}", "/users/<id>", user_handler.get),
            ("PATCH", "/users/{id}", "/users/<id>", user_handler.update),
            ("DELETE", "/users/{id}", "/users/<id>", user_handler.delete),
            ("GET", "/users/{userID}/accounts", "/users/<user_id>/accounts", account_handler.list_by_user),
            ("POST", "/users/{userID}/accounts", "/users/<user_id>/accounts", account_handler.create),
            ("GET", "/accounts/{id}", "/accounts/<id>", account_handler.get),
            ("PATCH", "/accounts/{id}", "/accounts/<id>", account_handler.update),
            ("DELETE", "/accounts/{id}", "/accounts/<id>", account_handler.delete),
        ]
        self._endpoints: dict[str, tuple[str, Callable]] = {}
        rules = []
        for method, pattern, rule, handler in routes:
            endpoint = f"{method} {pattern}"
            self._endpoints[endpoint] = (endpoint, handler)
            rules.append(Rule(rule, methods=[method], endpoint=endpoint))
        self._map = Map(rules, strict_slashes=False, merge_slashes=False)

    def __call__(self, environ, start_response):
        adapter = self._map.bind_to_environ(environ)
        try:
            endpoint, args = adapter.match()
        except MethodNotAllowed as err:
            allow = ", ".join(sorted(err.valid_methods or []))
            response = Response("Method Not Allowed\n", status=405, content_type="text/plain; charset=utf-8")
            response.headers["Allow"] = allow
            return response(environ, start_response)
        except NotFound:
            response = Response("404 page not found\n", status=404, content_type="text/plain; charset=utf-8")
            return response(environ, start_response)
        pattern, handler = self._endpoints[endpoint]
        environ[ROUTE_ENVIRON_KEY] = pattern
        response = handler(Request(environ), **args)
        return response(environ, start_response)


def new_router(health_handler: Any, user_handler: Any, account_handler: Any, validator: Any) -> Callable:
    """Build the full application: routes, validation, logging, request ids, recovery."""
    app: Callable = Router(health_handler, user_handler, account_handler)
    if validator is not None:
        app = validator.middleware(app)
    app = logger(app)
    app = request_id(app)
    app = recovery(app)
    return app