"""Request validation against an OpenAPI 3 document, as WSGI middleware."""

from __future__ import annotations

import copy
import io
import json
import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import best_match
from werkzeug.wrappers import Request, Response

from .jsonapi import CONTENT_TYPE, Error, ErrorDocument, ErrorSource

_log = logging.getLogger(__name__)

_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
_TEMPLATE = re.compile(r"\{([^}/]+)\}")


class SchemaViolation(Exception):
    """A value does not satisfy a schema keyword."""

    def __init__(
        self,
        reason: str,
        schema: Mapping[str, Any] | None = None,
        schema_field: str = "",
        pointer: Sequence[Any] = (),
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.schema = schema
        self.schema_field = schema_field
        self.pointer = [str(p) for p in pointer]

    def json_pointer(self) -> list[str]:
        return list(self.pointer)


class ParameterError(Exception):
    """A request parameter is missing or cannot be parsed."""

    def __init__(self, parameter: Mapping[str, Any] | None, err: BaseException) -> None:
        name = parameter.get("name", "") if parameter else ""
        super().__init__(f'parameter "{name}": {err}')
        self.parameter = parameter
        self.err = err


class MultiError(Exception):
    """Several validation errors reported together."""

    def __init__(self, errors: Iterable[BaseException] = ()) -> None:
        self.errors = list(errors)
        super().__init__(" | ".join(str(e) for e in self.errors))


@dataclass
class _Route:
    template: str
    method: str
    pattern: re.Pattern[str]
    names: list[str]
    operation: dict[str, Any]
    parameters: list[dict[str, Any]] = field(default_factory=list)


def _resolve(node: Any, spec: Mapping[str, Any], seen: frozenset[str] = frozenset()) -> Any:
    """Inline local $refs and map OpenAPI ``nullable`` onto JSON Schema types."""
    if isinstance(node, list):
        return [_resolve(n, spec, seen) for n in node]
    if not isinstance(node, dict):
        return node
    ref = node.get("$ref")
    if isinstance(ref, str):
        if ref in seen or not ref.startswith("#/"):
            return {}
        target: Any = spec
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                raise ValueError(f"unresolvable reference {ref!r}")
            target = target[part]
        return _resolve(target, spec, seen | {ref})
    out = {k: _resolve(v, spec, seen) for k, v in node.items()}
    if out.pop("nullable", False) is True and isinstance(out.get("type"), str):
        out["type"] = [out["type"], "null"]
    return out


def _load(spec_data: bytes | str) -> dict[str, Any]:
    try:
        doc = yaml.safe_load(spec_data)
    except yaml.YAMLError as err:
        raise ValueError(f"load openapi spec: {err}") from err
    if not isinstance(doc, dict):
        raise ValueError("load openapi spec: document is not a mapping")
    version = str(doc.get("openapi", ""))
    if not version.startswith("3."):
        raise ValueError(f"validate openapi spec: unsupported openapi version {version!r}")
    if not isinstance(doc.get("info"), dict):
        raise ValueError("validate openapi spec: info is required")
    if not isinstance(doc.get("paths"), dict):
        raise ValueError("validate openapi spec: paths is required")
    return doc


def _compile_routes(spec: dict[str, Any]) -> list[_Route]:
    routes = []
    for template, item in spec["paths"].items():
        item = _resolve(item, spec)
        names = _TEMPLATE.findall(template)
        regex = "".join(
            "([^/]+)" if i % 2 else re.escape(part)
            for i, part in enumerate(_TEMPLATE.split(template))
        )
        shared = item.get("parameters", [])
        for method in _METHODS:
            operation = item.get(method)
            if not isinstance(operation, dict):
                continue
            merged = {(p.get("in"), p.get("name")): p for p in shared}
            merged.update({(p.get("in"), p.get("name")): p for p in operation.get("parameters", [])})
            routes.append(
                _Route(template, method.upper(), re.compile(regex + r"\Z"), names, operation, list(merged.values()))
            )
    routes.sort(key=lambda r: len(r.names))
    return routes


def _coerce(raw: str, schema: Mapping[str, Any]) -> Any:
    kind = schema.get("type")
    kinds = kind if isinstance(kind, list) else [kind]
    if "integer" in kinds:
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f'value {raw}: an invalid integer: invalid syntax') from None
    if "number" in kinds:
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f'value {raw}: an invalid number: invalid syntax') from None
    if "boolean" in kinds:
        if raw in ("true", "false"):
            return raw == "true"
        raise ValueError(f"value {raw}: an invalid boolean: invalid syntax")
    return raw


def _check_schema(value: Any, schema: Mapping[str, Any]) -> None:
    validator = jsonschema.Draft7Validator(schema, format_checker=jsonschema.FormatChecker())
    error = best_match(validator.iter_errors(value))
    if error is not None:
        raise SchemaViolation(
            error.message,
            schema=error.schema if isinstance(error.schema, dict) else None,
            schema_field=str(error.validator),
            pointer=list(error.absolute_path),
        )


class Validator:
    """Validates requests whose route the OpenAPI document describes."""

    def __init__(self, spec_data: bytes | str) -> None:
        self._spec = _load(spec_data)
        try:
            self._routes = _compile_routes(self._spec)
        except ValueError as err:
            raise ValueError(f"create openapi router: {err}") from err

    def _find_route(self, method: str, path: str) -> tuple[_Route, dict[str, str]] | None:
        for route in self._routes:
            if route.method != method:
                continue
            match = route.pattern.match(path)
            if match:
                return route, dict(zip(route.names, match.groups()))
        return None

    def _validate(self, request: Request, route: _Route, path_params: dict[str, str], body: bytes) -> None:
        for param in route.parameters:
            location, name = param.get("in"), param.get("name", "")
            if location == "path":
                raw = path_params.get(name)
            elif location == "query":
                raw = request.args.get(name)
            elif location == "header":
                raw = request.headers.get(name)
            else:
                continue
            if raw is None:
                if param.get("required"):
                    raise ParameterError(param, ValueError("value is required but missing"))
                continue
            schema = param.get("schema") or {}
            try:
                value = _coerce(raw, schema)
            except ValueError as err:
                raise ParameterError(param, err) from None
            _check_schema(value, schema)

        request_body = route.operation.get("requestBody")
        if not isinstance(request_body, dict):
            return
        if not body:
            if request_body.get("required"):
                raise ValueError("request body has an error: value is required but missing")
            return
        content = request_body.get("content") or {}
        media_type = (request.content_type or "").split(";", 1)[0].strip().lower()
        if media_type not in content:
            raise ValueError(f'header Content-Type has unexpected value: "{request.content_type or ""}"')
        if "json" not in media_type:
            return
        try:
            value = json.loads(body)
        except ValueError as err:
            raise ValueError(f"request body has an error: failed to decode request body: {err}") from None
        schema = (content[media_type] or {}).get("schema")
        if isinstance(schema, dict):
            _check_schema(value, schema)

    def middleware(self, app: Callable) -> Callable:
        """Wrap a WSGI app; invalid requests get a 400 JSON:API error document."""

        def wrapped(environ, start_response):
            method = environ.get("REQUEST_METHOD", "GET").upper()
            found = self._find_route(method, environ.get("PATH_INFO", "") or "/")
            if found is None:
                return app(environ, start_response)
            route, path_params = found
            request = Request(environ)
            body = request.get_data()
            environ["wsgi.input"] = io.BytesIO(body)
            environ["CONTENT_LENGTH"] = str(len(body))
            try:
                self._validate(request, route, path_params, body)
            except Exception as err:
                doc = ErrorDocument(errors=validation_errors(err))
                response = Response(json.dumps(doc.to_dict()) + "\n", status=400, content_type=CONTENT_TYPE)
                return response(environ, start_response)
            return app(environ, start_response)

        return wrapped


def validation_errors(err: BaseException) -> list[Error]:
    """Convert a validation failure into JSON:API error objects."""
    if isinstance(err, MultiError):
        out = [e for inner in err.errors for e in validation_errors(inner)]
        return out or [Error(status="400", title="Bad Request")]
    if isinstance(err, SchemaViolation):
        return [_schema_error(err)]
    if isinstance(err, ParameterError):
        if isinstance(err.err, SchemaViolation):
            return [_schema_error(err.err)]
        if err.parameter is not None:
            return [_parameter_error(err)]
    return [Error(status="400", title="Bad Request", detail=first_line(str(err)))]


def _schema_error(err: SchemaViolation) -> Error:
    parts = err.json_pointer()
    pointer = "/" + "/".join(parts) if parts else ""
    return Error(
        status="400",
        title="Bad Request",
        detail=build_schema_detail(err),
        source=ErrorSource(pointer=pointer),
    )


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_schema_detail(err: SchemaViolation) -> str:
    """Describe a schema violation, adding the constraint that was broken."""
    detail = err.reason
    schema = err.schema
    if schema is None or not err.schema_field:
        return detail
    name = err.schema_field
    if name == "required":
        return detail
    if name == "format":
        return f"{detail} (expected format: {schema.get('format', '')})"
    if name == "enum":
        values = ", ".join(_format_value(v) for v in schema.get("enum", []))
        return f"{detail} (allowed: {values})"
    if name == "minLength":
        return f"{detail} (minimum length: {schema.get('minLength', 0)})"
    if name == "maxLength":
        if schema.get("maxLength") is not None:
            return f"{detail} (maximum length: {schema['maxLength']})"
        return detail
    if name == "minimum":
        if schema.get("minimum") is not None:
            return f"{detail} (minimum: {_format_value(schema['minimum'])})"
        return detail
    if name == "maximum":
        if schema.get("maximum") is not None:
            return f"{detail} (maximum: {_format_value(schema['maximum'])})"
        return detail
    if name == "type":
        kind = schema.get("type", "")
        kind = ", ".join(kind) if isinstance(kind, list) else kind
        return f"{detail} (expected type: {kind})"
    return f"{detail} ({name})"


def _parameter_error(err: ParameterError) -> Error:
    parameter = err.parameter or {}
    location = parameter.get("in", "")
    name = parameter.get("name", "")
    source = ErrorSource()
    if location == "path":
        source.pointer = "/data/" + name
    elif location in ("query", "header"):
        source.parameter = name
    return Error(
        status="400",
        title="Bad Request",
        detail=f'parameter "{name}": {first_line(str(err.err))}',
        source=source,
    )


def first_line(text: str) -> str:
    """Return text up to its first newline."""
    return text.split("\n", 1)[0]


__all__ = [
    "MultiError",
    "ParameterError",
    "SchemaViolation",
    "Validator",
    "build_schema_detail",
    "first_line",
    "validation_errors",
]