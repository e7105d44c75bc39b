import uuid

import pytest

from servicetemplate.accounts import Account, CreateInput, Service, UpdateInput
from servicetemplate.domain import NotFoundError, Page, PageCursor, PageInput, ValidationError


class FakeRepository:
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def _respond(self, name, *args):
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error
        return self.result

    def create(self, data):
        return self._respond("create", data)

    def get_by_id(self, id):
        return self._respond("get_by_id", id)

    def list_by_user_id(self, user_id, page):
        return self._respond("list_by_user_id", user_id, page)

    def update(self, id, data):
        return self._respond("update", id, data)

    def delete(self, id):
        return self._respond("delete", id)


def test_list_by_user_id_defaults_size():
    repo = FakeRepository(result=Page())
    user_id = uuid.uuid4()
    Service(repo).list_by_user_id(user_id, PageInput())
    assert repo.calls == [("list_by_user_id", user_id, PageInput(size=20))]


def test_list_by_user_id_clamps_size():
    repo = FakeRepository(result=Page())
    user_id = uuid.uuid4()
    Service(repo).list_by_user_id(user_id, PageInput(size=9999))
    assert repo.calls == [("list_by_user_id", user_id, PageInput(size=100))]


def test_list_by_user_id_keeps_cursor():
    repo = FakeRepository(result=Page())
    user_id = uuid.uuid4()
    Service(repo).list_by_user_id(user_id, PageInput(size=3, before=PageCursor(4)))
    assert repo.calls == [("list_by_user_id", user_id, PageInput(size=3, before=PageCursor(4)))]


def test_create_succeeds_with_valid_input():
    want = Account(id=uuid.uuid4(), name="Savings", currency="USD")
    repo = FakeRepository(result=want)
    data = CreateInput(user_id=uuid.uuid4(), name="Savings", currency="USD")
    assert Service(repo).create(data) is want
    assert repo.calls == [("create", data)]


def test_create_rejects_empty_name():
    repo = FakeRepository()
    with pytest.raises(ValidationError, match="name is required"):
        Service(repo).create(CreateInput(currency="USD"))
    assert repo.calls == []


def test_create_rejects_empty_currency():
    repo = FakeRepository()
    with pytest.raises(ValidationError, match="currency is required"):
        Service(repo).create(CreateInput(name="Account"))
    assert repo.calls == []


def test_create_rejects_invalid_currency_length():
    repo = FakeRepository()
    with pytest.raises(ValidationError, match="3-letter"):
        Service(repo).create(CreateInput(name="Account", currency="US"))
    assert repo.calls == []


def test_get_by_id_propagates_not_found():
    repo = FakeRepository(error=NotFoundError())
    with pytest.raises(NotFoundError):
        Service(repo).get_by_id(uuid.uuid4())


def test_update_and_delete_delegate():
    aid = uuid.uuid4()
    updated = Account(id=aid, name="New")
    repo = FakeRepository(result=updated)
    service = Service(repo)
    assert service.update(aid, UpdateInput(name="New")) is updated
    service.delete(aid)
    assert repo.calls == [("update", aid, UpdateInput(name="New")), ("delete", aid)]


def test_account_balance_defaults_to_zero():
    account = Account(id=uuid.uuid4())
    assert account.balance == 0
    assert account.user_id == uuid.UUID(int=0)