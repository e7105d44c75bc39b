import uuid

import pytest

from servicetemplate.domain import NotFoundError, Page, PageCursor, PageInput, ValidationError
from servicetemplate.users import CreateInput, Service, UpdateInput, User


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

    def list(self, page):
        return self._respond("list", page)

    def update(self, id, data):
        return self._respond("update", id, data)

    def delete(self, id):
        return self._respond("delete", id)


def test_create_succeeds_with_valid_input():
    want = User(id=uuid.uuid4(), email="a@example.com", name="A")
    repo = FakeRepository(result=want)
    got = Service(repo).create(CreateInput(email="a@example.com", name="A"))
    assert got is want
    assert repo.calls == [("create", CreateInput(email="a@example.com", name="A"))]


def test_create_rejects_empty_email():
    repo = FakeRepository()
    with pytest.raises(ValidationError):
        Service(repo).create(CreateInput(name="A"))
    assert repo.calls == []


def test_create_rejects_empty_name():
    repo = FakeRepository()
    with pytest.raises(ValidationError, match="name is required"):
        Service(repo).create(CreateInput(email="a@example.com"))
    assert repo.calls == []


def test_list_defaults_size():
    repo = FakeRepository(result=Page())
    Service(repo).list(PageInput())
    assert repo.calls == [("list", PageInput(size=20))]


def test_list_clamps_size():
    repo = FakeRepository(result=Page())
    Service(repo).list(PageInput(size=9999))
    assert repo.calls == [("list", PageInput(size=100))]


def test_list_keeps_cursor_and_valid_size():
    repo = FakeRepository(result=Page())
    Service(repo).list(PageInput(size=5, after=PageCursor(9)))
    assert repo.calls == [("list", PageInput(size=5, after=PageCursor(9)))]


def test_get_by_id_propagates_not_found():
    repo = FakeRepository(error=NotFoundError())
    with pytest.raises(NotFoundError):
        Service(repo).get_by_id(uuid.uuid4())


def test_update_and_delete_delegate():
    uid = uuid.uuid4()
    updated = User(id=uid, name="B")
    repo = FakeRepository(result=updated)
    service = Service(repo)
    assert service.update(uid, UpdateInput(name="B")) is updated
    service.delete(uid)
    assert repo.calls == [("update", uid, UpdateInput(name="B")), ("delete", uid)]