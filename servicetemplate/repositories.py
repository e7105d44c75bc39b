"""SQL-backed implementations of the user and account repositories."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from . import accounts, users
from .db import NoRowsError, Pool, map_error, paginate
from .domain import DomainError, Page, PageInput


@contextmanager
def _mapped_errors() -> Iterator[None]:
    try:
        yield
    except DomainError:
        raise
    except Exception as err:
        raise map_error(err) from err


def _to_uuid(value: Any) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def _to_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        moment = value
    else:
        moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _scan_user(row: Sequence[Any]) -> tuple[int, users.User]:
    internal_id, uid, email, name, created_at, updated_at = row
    return int(internal_id), users.User(
        id=_to_uuid(uid),
        email=email,
        name=name,
        created_at=_to_time(created_at),
        updated_at=_to_time(updated_at),
    )


def _scan_account(row: Sequence[Any]) -> tuple[int, accounts.Account]:
    internal_id, aid, user_id, name, balance, currency, created_at, updated_at = row
    return int(internal_id), accounts.Account(
        id=_to_uuid(aid),
        user_id=_to_uuid(user_id),
        name=name,
        balance=int(balance),
        currency=currency,
        created_at=_to_time(created_at),
        updated_at=_to_time(updated_at),
    )


_USER_COLUMNS = "id, uuid, email, name, created_at, updated_at"
_ACCOUNT_COLUMNS = "id, uuid, user_id, name, balance, currency, created_at, updated_at"


class UserRepository:
    """Stores users in the ``users`` table."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    def create(self, data: users.CreateInput) -> users.User:
        with _mapped_errors():
            row = self._pool.query_row(
                f"""INSERT INTO users (uuid, email, name) VALUES ($1, $2, $3)
                RETURNING {_USER_COLUMNS}""",
                str(uuid4()),
                data.email,
                data.name,
            )
            return _scan_user(row)[1]

    def get_by_id(self, id: UUID) -> users.User:
        with _mapped_errors():
            row = self._pool.query_row(
                f"SELECT {_USER_COLUMNS} FROM users WHERE uuid = $1", str(id)
            )
            return _scan_user(row)[1]

    def list(self, page: PageInput) -> Page[users.User]:
        limit = page.size + 1
        with _mapped_errors():
            if page.before is not None:
                rows = self._pool.query(
                    f"""SELECT {_USER_COLUMNS}
                    FROM users
                    WHERE id < $2
                    ORDER BY id DESC
                    LIMIT $1""",
                    limit,
                    page.before.id,
                )
            elif page.after is not None:
                rows = self._pool.query(
                    f"""SELECT {_USER_COLUMNS}
                    FROM users
                    WHERE id > $2
                    ORDER BY id ASC
                    LIMIT $1""",
                    limit,
                    page.after.id,
                )
            else:
                rows = self._pool.query(
                    f"""SELECT {_USER_COLUMNS}
                    FROM users
                    ORDER BY id ASC
                    LIMIT $1""",
                    limit,
                )
            scanned = [_scan_user(row) for row in rows]
        return paginate([u for _, u in scanned], [i for i, _ in scanned], page)

    def update(self, id: UUID, data: users.UpdateInput) -> users.User:
        with _mapped_errors():
            row = self._pool.query_row(
                f"""UPDATE users
                SET email      = COALESCE($2, email),
                    name       = COALESCE($3, name),
                    updated_at = NOW()
                WHERE uuid = $1
                RETURNING {_USER_COLUMNS}""",
                str(id),
                data.email,
                data.name,
            )
            return _scan_user(row)[1]

    def delete(self, id: UUID) -> None:
        with _mapped_errors():
            affected = self._pool.execute("DELETE FROM users WHERE uuid = $1", str(id))
        if affected == 0:
            raise map_error(NoRowsError())


class AccountRepository:
    """Stores accounts in the ``accounts`` table."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    def create(self, data: accounts.CreateInput) -> accounts.Account:
        with _mapped_errors():
            row = self._pool.query_row(
                f"""INSERT INTO accounts (uuid, user_id, name, currency)
                VALUES ($1, $2, $3, $4)
                RETURNING {_ACCOUNT_COLUMNS}""",
                str(uuid4()),
                str(data.user_id),
                data.name,
                data.currency,
            )
            return _scan_account(row)[1]

    def get_by_id(self, id: UUID) -> accounts.Account:
        with _mapped_errors():
            row = self._pool.query_row(
                f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE uuid = $1", str(id)
            )
            return _scan_account(row)[1]

    def list_by_user_id(self, user_id: UUID, page: PageInput) -> Page[accounts.Account]:
        limit = page.size + 1
        with _mapped_errors():
            if page.before is not None:
                rows = self._pool.query(
                    f"""SELECT {_ACCOUNT_COLUMNS}
                    FROM accounts
                    WHERE user_id = $1 AND id < $3
                    ORDER BY id DESC
                    LIMIT $2""",
                    str(user_id),
                    limit,
                    page.before.id,
                )
            elif page.after is not None:
                rows = self._pool.query(
                    f"""SELECT {_ACCOUNT_COLUMNS}
                    FROM accounts
                    WHERE user_id = $1 AND id > $3
                    ORDER BY id ASC
                    LIMIT $2""",
                    str(user_id),
                    limit,
                    page.after.id,
                )
            else:
                rows = self._pool.query(
                    f"""SELECT {_ACCOUNT_COLUMNS}
                    FROM accounts
                    WHERE user_id = $1
                    ORDER BY id ASC
                    LIMIT $2""",
                    str(user_id),
                    limit,
                )
            scanned = [_scan_account(row) for row in rows]
        return paginate([a for _, a in scanned], [i for i, _ in scanned], page)

    def update(self, id: UUID, data: accounts.UpdateInput) -> accounts.Account:
        with _mapped_errors():
            row = self._pool.query_row(
                f"""UPDATE accounts
                SET name       = COALESCE($2, name),
                    updated_at = NOW()
                WHERE uuid = $1
                RETURNING {_ACCOUNT_COLUMNS}""",
                str(id),
                data.name,
            )
            return _scan_account(row)[1]

    def delete(self, id: UUID) -> None:
        with _mapped_errors():
            affected = self._pool.execute("DELETE FROM accounts WHERE uuid = $1", str(id))
        if affected == 0:
            raise map_error(NoRowsError())