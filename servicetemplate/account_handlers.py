"""HTTP handlers for the accounts resource."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from werkzeug.wrappers import Request, Response

from .accounts import Account, CreateInput, Service, UpdateInput
from .jsonapi import Document, DocumentListLinks, Resource, new_document, new_document_list, new_resource
from .responses import (
    RequestError,
    decode_body,
    error_response,
    pagination_url,
    parse_page,
    path_uuid,
    write_json,
)

RESOURCE_TYPE = "accounts"


@dataclass
class AccountAttributes:
    user_id: str
    name: str
    balance: int
    currency: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CreateAccountAttributes:
    name: str = ""
    currency: str = ""


@dataclass(frozen=True)
class UpdateAccountAttributes:
    name: str | None = None


def _string(attributes: dict[str, Any], key: str) -> str | None:
    value = attributes.get(key)
    if value is None or isinstance(value, str):
        return value
    raise RequestError(f"json: cannot unmarshal {type(value).__name__} into attribute {key!r} of type string")


def _attributes(account: Account) -> AccountAttributes:
    return AccountAttributes(
        user_id=str(account.user_id),
        name=account.name,
        balance=account.balance,
        currency=account.currency,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


def _document(account: Account) -> Document[AccountAttributes]:
    return new_document(str(account.id), RESOURCE_TYPE, _attributes(account))


def _resource(account: Account) -> Resource[AccountAttributes]:
    return new_resource(str(account.id), RESOURCE_TYPE, _attributes(account))


def _no_content() -> Response:
    response = Response(status=204)
    response.headers.remove("Content-Type")
    return response


class AccountHandler:
    """Decodes account requests, calls the account service and encodes the result."""

    def __init__(self, service: Service) -> None:
        self._service = service

    def list_by_user(self, request: Request, user_id: str) -> Response:
        try:
            owner = path_uuid(user_id, "invalid user_id")
            page_input = parse_page(request)
        except RequestError as err:
            return err.response
        try:
            page = self._service.list_by_user_id(owner, page_input)
        except Exception as err:
            return error_response(err)
        doc = new_document_list(_resource(a) for a in page.items)
        doc.links = DocumentListLinks(
            next=pagination_url(request, "page[after]", page.next),
            prev=pagination_url(request, "page[before]", page.prev),
        )
        return write_json(200, doc)

    def create(self, request: Request, user_id: str) -> Response:
        try:
            owner = path_uuid(user_id, "invalid user_id")
            data = decode_body(request)
            attrs = CreateAccountAttributes(
                name=_string(data["attributes"], "name") or "",
                currency=_string(data["attributes"], "currency") or "",
            )
        except RequestError as err:
            return err.response
        try:
            account = self._service.create(
                CreateInput(user_id=owner, name=attrs.name, currency=attrs.currency)
            )
        except Exception as err:
            return error_response(err)
        return write_json(201, _document(account))

    def get(self, request: Request, id: str) -> Response:
        try:
            account_id = path_uuid(id, "invalid id")
        except RequestError as err:
            return err.response
        try:
            account = self._service.get_by_id(account_id)
        except Exception as err:
            return error_response(err)
        return write_json(200, _document(account))

    def update(self, request: Request, id: str) -> Response:
        try:
            account_id = path_uuid(id, "invalid id")
            data = decode_body(request)
            attrs = UpdateAccountAttributes(name=_string(data["attributes"], "name"))
        except RequestError as err:
            return err.response
        try:
            account = self._service.update(account_id, UpdateInput(name=attrs.name))
        except Exception as err:
            return error_response(err)
        return write_json(200, _document(account))

    def delete(self, request: Request, id: str) -> Response:
        try:
            account_id = path_uuid(id, "invalid id")
        except RequestError as err:
            return err.response
        try:
            self._service.delete(account_id)
        except Exception as err:
            return error_response(err)
        return _no_content()