import json
import uuid

from werkzeug.test import EnvironBuilder

from servicetemplate.account_handlers import AccountHandler
from servicetemplate.accounts import Account, CreateInput, UpdateInput
from servicetemplate.domain import NotFoundError, Page, PageCursor, PageInput, ValidationError


class FakeAccountService:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def _answer(self, *call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error
        return self.result

    def list_by_user_id(self, user_id, page):
        return self._answer("list_by_user_id", user_id, page)

    def create(self, data):
        return self._answer("create", data)

    def get_by_id(self, id):
        return self._answer("get_by_id", id)

    def update(self, id, data):
        return self._answer("update", id, data)

    def delete(self, id):
        return self._answer("delete", id)


def make_request(method, path, body=None):
    builder = EnvironBuilder(method=method, path=path, data=body)
    try:
        return builder.get_request()
    finally:
        builder.close()


def body_of(response):
    return json.loads(response.get_data(as_text=True))


def test_list_by_user_success():
    owner = uuid.uuid4()
    svc = FakeAccountService(
        Page(items=[Account(id=uuid.uuid4(), user_id=owner, name="Savings", currency="USD")])
    )
    response = AccountHandler(svc).list_by_user(make_request("GET", f"/users/{owner}/accounts"), str(owner))
    assert response.status_code == 200
    data = body_of(response)["data"]
    assert len(data) == 1
    assert data[0]["type"] == "accounts"
    assert data[0]["attributes"]["user_id"] == str(owner)
    assert data[0]["attributes"]["balance"] == 0
    assert svc.calls == [("list_by_user_id", owner, PageInput(size=20))]


def test_list_by_user_prev_link():
    owner = uuid.uuid4()
    svc = FakeAccountService(Page(items=[], prev=PageCursor(5)))
    response = AccountHandler(svc).list_by_user(
        make_request("GET", f"/users/{owner}/accounts?page[after]=eyJpIjo1fQ"), str(owner)
    )
    assert body_of(response)["links"] == {
        "next": None,
        "prev": f"http://localhost/users/{owner}/accounts?page%5Bbefore%5D=eyJpIjo1fQ",
    }


def test_list_by_user_invalid_user_id():
    svc = FakeAccountService()
    response = AccountHandler(svc).list_by_user(make_request("GET", "/users/bad/accounts"), "bad")
    assert response.status_code == 400
    assert body_of(response)["errors"][0]["detail"] == "invalid user_id"
    assert svc.calls == []


def test_create_success():
    owner = uuid.uuid4()
    svc = FakeAccountService(Account(id=uuid.uuid4(), user_id=owner, name="Savings", currency="USD"))
    body = '{"data":{"type":"accounts","attributes":{"name":"Savings","currency":"USD"}}}'
    response = AccountHandler(svc).create(make_request("POST", f"/users/{owner}/accounts", body), str(owner))
    assert response.status_code == 201
    assert svc.calls == [("create", CreateInput(user_id=owner, name="Savings", currency="USD"))]
    assert body_of(response)["data"]["attributes"]["currency"] == "USD"


def test_create_invalid_user_id():
    svc = FakeAccountService()
    response = AccountHandler(svc).create(make_request("POST", "/users/bad/accounts", "{}"), "bad")
    assert (response.status_code, svc.calls) == (400, [])


def test_create_validation_error():
    owner = uuid.uuid4()
    svc = FakeAccountService(error=ValidationError("currency must be a 3-letter ISO 4217 code"))
    body = '{"data":{"type":"accounts","attributes":{"name":"Bad","currency":"US"}}}'
    response = AccountHandler(svc).create(make_request("POST", f"/users/{owner}/accounts", body), str(owner))
    assert response.status_code == 422
    assert body_of(response)["errors"][0]["detail"] == (
        "validation error: currency must be a 3-letter ISO 4217 code"
    )


def test_get_not_found():
    account_id = uuid.uuid4()
    svc = FakeAccountService(error=NotFoundError())
    response = AccountHandler(svc).get(make_request("GET", f"/accounts/{account_id}"), str(account_id))
    assert response.status_code == 404
    assert svc.calls == [("get_by_id", account_id)]


def test_get_invalid_id():
    response = AccountHandler(FakeAccountService()).get(make_request("GET", "/accounts/bad"), "bad")
    assert response.status_code == 400


def test_update_success():
    account_id = uuid.uuid4()
    svc = FakeAccountService(Account(id=account_id, name="New"))
    body = '{"data":{"type":"accounts","attributes":{"name":"New"}}}'
    response = AccountHandler(svc).update(
        make_request("PATCH", f"/accounts/{account_id}", body), str(account_id)
    )
    assert response.status_code == 200
    assert svc.calls == [("update", account_id, UpdateInput(name="New"))]
    assert body_of(response)["data"]["attributes"]["name"] == "New"


def test_delete_not_found():
    account_id = uuid.uuid4()
    svc = FakeAccountService(error=NotFoundError())
    response = AccountHandler(svc).delete(make_request("DELETE", f"/accounts/{account_id}"), str(account_id))
    assert response.status_code == 404


def test_delete_success():
    account_id = uuid.uuid4()
    svc = FakeAccountService()
    response = AccountHandler(svc).delete(make_request("DELETE", f"/accounts/{account_id}"), str(account_id))
    assert response.status_code == 204
    assert svc.calls == [("delete", account_id)]