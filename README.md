# servicetemplate

A small, layered web service that exposes **users** and their **accounts**
through a JSON:API-style REST interface. The application is a WSGI callable,
so any WSGI server can host it.

## Endpoints

| Method   | Path                         | Handler method                   |
|----------|------------------------------|----------------------------------|
| `GET`    | `/health/live`               | `HealthHandler.live`             |
| `GET`    | `/health/ready`              | `HealthHandler.ready`            |
| `GET`    | `/users`                     | `UserHandler.list`               |
| `POST`   | `/users`                     | `UserHandler.create`             |
| `GET`    | `/users/{id}`                | `UserHandler.get`                |
| `PATCH`  | `/users/{id}`                | `UserHandler.update`             |
| `DELETE` | `/users/{id}`                | `UserHandler.delete`             |
| `GET`    | `/users/{userID}/accounts`   | `AccountHandler.list_by_user`    |
| `POST`   | `/users/{userID}/accounts`   | `AccountHandler.create`          |
| `GET`    | `/accounts/{id}`             | `AccountHandler.get`             |
| `PATCH`  | `/accounts/{id}`             | `AccountHandler.update`          |
| `DELETE` | `/accounts/{id}`             | `AccountHandler.delete`          |

Resource responses use the `application/vnd.api+json` content type; the
health endpoints answer plain `application/json` (`{"status": "ok"}`, or
`503` with `{"status": "unavailable", "detail": ...}` when the database ping
fails). Unknown paths get `404` and a wrong method gets `405` with an `Allow`
header.

Errors come back as a JSON:API error document:

```json
{"errors": [{"status": "404", "title": "Not Found", "detail": "not found"}]}
```

Errors raised by the services map to HTTP statuses as follows:

* `NotFoundError` → `404 Not Found`
* `ConflictError` → `409 Conflict`
* `ValidationError` → `422 Unprocessable Entity`
* anything else → `500 Internal Server Error` (logged, no detail returned)

Malformed path ids, request bodies and pagination parameters are answered
with `400 Bad Request`.

## Business rules

* Creating a user needs a non-empty `email` and `name`.
* Creating an account needs a non-empty `name` and a three-character
  `currency` code.
* Updates only change the attributes that are present in the request.

## Pagination

List endpoints use keyset (cursor) pagination via query parameters:

* `page[size]` — a positive integer; defaults to 20, and the services cap
  it at 100.
* `page[after]` — the page after the given cursor.
* `page[before]` — the page before the given cursor.

`page[after]` and `page[before]` are mutually exclusive. Cursors are opaque
URL-safe strings (`encode_cursor` / `decode_cursor` in
`servicetemplate.responses`). List responses carry `links.next` and
`links.prev` as absolute URLs, or `null` when there is no such page.

## Modules

* `servicetemplate.domain` — `DomainError` and its subclasses
  `NotFoundError`, `ConflictError`, `ValidationError`; the pagination types
  `PageInput`, `PageCursor`, `Page`; `PAGE_SIZE_DEFAULT` and `PAGE_SIZE_MAX`.
* `servicetemplate.users`, `servicetemplate.accounts` — the `User` and
  `Account` entities, `CreateInput` / `UpdateInput`, the `Repository`
  protocols and the `Service` classes holding the rules above.
* `servicetemplate.db` — `Pool`, a bounded pool over any DB-API `connect`
  callable. SQL is written with `$1, $2, …` placeholders and rewritten for
  the driver's `paramstyle` (`"qmark"`, `"format"` or `"pyformat"`).
  `query`, `query_row` and `execute` are instrumented: each call is logged
  at debug level and counted in `Pool.operations`. `map_error` turns driver
  errors (SQLSTATE unique and foreign-key violations, and SQLite integrity
  errors) into domain errors; `paginate` trims over-fetched rows and builds
  the cursors.
* `servicetemplate.repositories` — `UserRepository` and `AccountRepository`
  on top of a `Pool`, reading and writing the `users` and `accounts` tables.
* `servicetemplate.jsonapi` — `Resource`, `Document`, `DocumentList`,
  `ErrorDocument` and friends, each with `to_dict()`; plus `new_document`,
  `new_document_list` and `new_resource`.
* `servicetemplate.responses` — helpers shared by the handlers
  (`write_json`, `error_response`, `decode_body`, `parse_page`,
  `pagination_url`, …) and `RequestError`.
* `servicetemplate.health`, `servicetemplate.user_handlers`,
  `servicetemplate.account_handlers` — the handlers; each method takes a
  `werkzeug` `Request` (and path values) and returns a `Response`.
* `servicetemplate.middleware` — WSGI middleware `logger`, `recovery`
  (unhandled exceptions become a JSON:API 500) and `request_id` (reads or
  generates `X-Request-Id` and echoes it); `request_id_from_context()` and
  `RequestIDFilter`, which adds `request_id` to log records.
* `servicetemplate.openapi_validator` — `Validator(spec_data)` loads an
  OpenAPI 3 document (YAML or JSON) and `Validator.middleware(app)` checks
  path, query and header parameters and JSON request bodies of the routes it
  describes, answering `400` with a pointer or parameter name in each error.
  Requests to routes the document does not describe pass through unchecked.
* `servicetemplate.router` — `Router` dispatches to the handlers;
  `new_router(health_handler, user_handler, account_handler, validator)`
  wraps it in the validator (when not `None`), logging, request ids and
  recovery, and returns the WSGI application.
* `servicetemplate.loghandlers` — `MultiHandler`, a `logging.Handler` that
  passes each record to every child handler whose level allows it.

## Wiring the application

```python
from werkzeug.serving import run_simple

from servicetemplate import accounts, users
from servicetemplate.account_handlers import AccountHandler
from servicetemplate.db import Pool
from servicetemplate.health import HealthHandler
from servicetemplate.openapi_validator import Validator
from servicetemplate.repositories import AccountRepository, UserRepository
from servicetemplate.router import new_router
from servicetemplate.user_handlers import UserHandler

pool = Pool(connect, max_conns=4, paramstyle="pyformat")  # connect: your driver's connect function
with open("openapi.yaml", "rb") as spec:
    validator = Validator(spec.read())

app = new_router(
    HealthHandler(pool),
    UserHandler(users.Service(UserRepository(pool))),
    AccountHandler(accounts.Service(AccountRepository(pool))),
    validator,
)
run_simple("127.0.0.1", 8080, app)
```

## Building JSON:API documents

```python
from servicetemplate.jsonapi import new_document, new_document_list, new_resource

doc = new_document("42", "users", {"email": "alice@example.com", "name": "Alice"})
doc.to_dict()
# {"data": {"id": "42", "type": "users",
#           "attributes": {"email": "alice@example.com", "name": "Alice"}}}

listing = new_document_list([new_resource("1", "users", {"name": "Bob"})])
listing.to_dict()["data"][0]["type"]  # "users"
```

## What it does not do

* There is no command-line program: nothing reads configuration or
  environment variables, binds a port or handles shutdown signals. You build
  the application and hand it to a WSGI server yourself.
* There are no schema migrations and no table definitions; the `users` and
  `accounts` tables must already exist in the database.
* No OpenAPI document ships with the package; pass your own to `Validator`.
* No traces or metrics are exported; query instrumentation is limited to
  debug logging and the `Pool.operations` counter.

## Running the tests

Install the `test` extra and run `pytest` from the project root.