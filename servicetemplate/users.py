"""User domain: entity, repository port and service."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol
from uuid import UUID

from .domain import PAGE_SIZE_DEFAULT, PAGE_SIZE_MAX, Page, PageInput, ValidationError

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


@dataclass
class User:
    id: UUID
    email: str = ""
    name: str = ""
    created_at: datetime = field(default=_ZERO_TIME)
    updated_at: datetime = field(default=_ZERO_TIME)


@dataclass(frozen=True)
class CreateInput:
    email: str = ""
    name: str = ""


@dataclass(frozen=True)
class UpdateInput:
    email: str | None = None
    name: str | None = None


class Repository(Protocol):
    """Storage port for users."""

    def create(self, data: CreateInput) -> User: ...

    def get_by_id(self, id: UUID) -> User: ...

    def list(self, page: PageInput) -> Page[User]: ...

    def update(self, id: UUID, data: UpdateInput) -> User: ...

    def delete(self, id: UUID) -> None: ...


class Service:
    """Applies user business rules before delegating to the repository."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def create(self, data: CreateInput) -> User:
        if not data.email:
            raise ValidationError("email is required")
        if not data.name:
            raise ValidationError("name is required")
        return self._repo.create(data)

    def get_by_id(self, id: UUID) -> User:
        return self._repo.get_by_id(id)

    def list(self, page: PageInput) -> Page[User]:
        size = page.size
        if size <= 0:
            size = PAGE_SIZE_DEFAULT
        if size > PAGE_SIZE_MAX:
            size = PAGE_SIZE_MAX
        return self._repo.list(dataclasses.replace(page, size=size))

    def update(self, id: UUID, data: UpdateInput) -> User:
        return self._repo.update(id, data)

    def delete(self, id: UUID) -> None:
        self._repo.delete(id)