"""JSON:API WSGI service for users and accounts, with cursor pagination,
OpenAPI request validation and SQL-backed repositories."""

__version__ = "0.1.0"

__all__ = [
    "domain",
    "users",
    "accounts",
    "jsonapi",
    "loghandlers",
    "middleware",
    "db",
    "repositories",
    "responses",
    "health",
    "user_handlers",
    "account_handlers",
    "openapi_validator",
    "router",
]