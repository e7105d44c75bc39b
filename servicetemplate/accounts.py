"""Account domain: entity, repository port and service."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol
from uuid import UUID

from .domain import PAGE_SIZE_DEFAULT, PAGE_SIZE_MAX, Page, PageInput, ValidationError

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_NIL_UUID = UUID(int=0)


@dataclass
class Account:
    id: UUID
    user_id: UUID = _NIL_UUID
    name: str = ""
    balance: int = 0
    currency: str = ""
    created_at: datetime = field(default=_ZERO_TIME)
    updated_at: datetime = field(default=_ZERO_TIME)


@dataclass(frozen=True)
class CreateInput:
    user_id: UUID = _NIL_UUID
    name: str = ""
    currency: str = ""


@dataclass(frozen=True)
class UpdateInput:
    name: str | None = None


class Repository(Protocol):
    """Storage port for accounts."""

    def create(self, data: CreateInput) -> Account: ...

    def get_by_id(self, id: UUID) -> Account: ...

    def list_by_user_id(self, user_id: UUID, page: PageInput) -> Page[Account]: ...

    def update(self, id: UUID, data: UpdateInput) -> Account: ...

    def delete(self, id: UUID) -> None: ...


class Service:
    """Applies account business rules before delegating to the repository."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def create(self, data: CreateInput) -> Account:
        if not data.name:
            raise ValidationError("name is required")
        if not data.currency:
            raise ValidationError("currency is required")
        if len(data.currency) != 3:
            raise ValidationError("currency must be a 3-letter ISO 4217 code")
        return self._repo.create(data)

    def get_by_id(self, id: UUID) -> Account:
        return self._repo.get_by_id(id)

    def list_by_user_id(self, user_id: UUID, page: PageInput) -> Page[Account]:
        size = page.size
        if size <= 0:
            size = PAGE_SIZE_DEFAULT
        if size > PAGE_SIZE_MAX:
            size = PAGE_SIZE_MAX
        return self._repo.list_by_user_id(user_id, dataclasses.replace(page, size=size))

    def update(self, id: UUID, data: UpdateInput) -> Account:
        return self._repo.update(id, data)

    def delete(self, id: UUID) -> None:
        self._repo.delete(id)