"""Domain errors and cursor-based pagination types shared by all domains."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

PAGE_SIZE_DEFAULT = 20
PAGE_SIZE_MAX = 100

T = TypeVar("T")


class DomainError(Exception):
    """Base class for errors raised by the domain layer."""

    label = "domain error"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.label}: {self.detail}" if self.detail else self.label


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    label = "not found"


class ConflictError(DomainError):
    """The operation conflicts with existing state."""

    label = "conflict"


class ValidationError(DomainError):
    """The input failed a business rule."""

    label = "validation error"


@dataclass(frozen=True)
class PageCursor:
    """Keyset position: the internal row id at a page boundary."""

    id: int


@dataclass(frozen=True)
class PageInput:
    """Pagination parameters for list operations."""

    size: int = 0
    after: PageCursor | None = None
    before: PageCursor | None = None


@dataclass
class Page(Generic[T]):
    """One page of results with optional cursors to the adjacent pages."""

    items: list[T] = field(default_factory=list)
    next: PageCursor | None = None
    prev: PageCursor | None = None