"""JSON:API document, resource and error objects."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar
from uuid import UUID

CONTENT_TYPE = "application/vnd.api+json"

T = TypeVar("T")


def _format_time(value: datetime) -> str:
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    if offset is None or not offset:
        return text + "Z"
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _encode(value: Any) -> Any:
    """Convert attribute values into JSON-compatible structures."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _encode(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, datetime):
        return _format_time(value if value.tzinfo else value.replace(tzinfo=timezone.utc))
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


@dataclass
class Links:
    self_link: str = ""
    related: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.self_link:
            out["self"] = self.self_link
        if self.related:
            out["related"] = self.related
        return out


@dataclass
class RelationshipData:
    id: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.type}


@dataclass
class Relationship:
    data: RelationshipData | None = None
    links: Links | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.data is not None:
            out["data"] = self.data.to_dict()
        if self.links is not None:
            out["links"] = self.links.to_dict()
        return out


@dataclass
class Resource(Generic[T]):
    id: str
    type: str
    attributes: T
    relationships: dict[str, Relationship] = field(default_factory=dict)
    links: Links | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "attributes": _encode(self.attributes),
        }
        if self.relationships:
            out["relationships"] = {k: v.to_dict() for k, v in self.relationships.items()}
        if self.links is not None:
            out["links"] = self.links.to_dict()
        return out


@dataclass
class ErrorSource:
    pointer: str = ""
    parameter: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.pointer:
            out["pointer"] = self.pointer
        if self.parameter:
            out["parameter"] = self.parameter
        return out


@dataclass
class Error:
    status: str
    title: str
    detail: str = ""
    source: ErrorSource | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"status": self.status, "title": self.title}
        if self.detail:
            out["detail"] = self.detail
        if self.source is not None:
            out["source"] = self.source.to_dict()
        return out


@dataclass
class Document(Generic[T]):
    """A document holding a single resource."""

    data: Resource[T] | None = None
    errors: list[Error] = field(default_factory=list)
    meta: Any = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.data is not None:
            out["data"] = self.data.to_dict()
        if self.errors:
            out["errors"] = [e.to_dict() for e in self.errors]
        if self.meta is not None:
            out["meta"] = _encode(self.meta)
        return out


@dataclass
class DocumentListLinks:
    next: str | None = None
    prev: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"next": self.next, "prev": self.prev}


@dataclass
class DocumentList(Generic[T]):
    """A document holding a collection of resources."""

    data: list[Resource[T]] = field(default_factory=list)
    links: DocumentListLinks | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"data": [r.to_dict() for r in self.data]}
        if self.links is not None:
            out["links"] = self.links.to_dict()
        return out


@dataclass
class ErrorDocument:
    errors: list[Error] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"errors": [e.to_dict() for e in self.errors]}


def new_document(id: str, resource_type: str, attributes: T) -> Document[T]:
    return Document(data=Resource(id=id, type=resource_type, attributes=attributes))


def new_document_list(resources: Iterable[Resource[T]] | None) -> DocumentList[T]:
    return DocumentList(data=list(resources) if resources is not None else [])


def new_resource(id: str, resource_type: str, attributes: T) -> Resource[T]:
    return Resource(id=id, type=resource_type, attributes=attributes)