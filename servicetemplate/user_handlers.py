"""HTTP handlers for the users resource."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from werkzeug.wrappers import Request, Response

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
from .users import CreateInput, Service, UpdateInput, User

RESOURCE_TYPE = "users"


@dataclass
class UserAttributes:
    email: str
    name: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CreateUserAttributes:
    email: str = ""
    name: str = ""


@dataclass(frozen=True)
class UpdateUserAttributes:
    email: str | None = None
    name: str | None = None


def _string(attributes: dict[str, Any], key: str) -> str | None:
    value = attributes.get(key)
    if value is None or isinstance(value, str):
        return value
    raise RequestError(f"json: cannot unmarshal {type(value).__name__} into attribute {key!r} of type string")


def _attributes(user: User) -> UserAttributes:
    return UserAttributes(
        email=user.email,
        name=user.name,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _document(user: User) -> Document[UserAttributes]:
    return new_document(str(user.id), RESOURCE_TYPE, _attributes(user))


def _resource(user: User) -> Resource[UserAttributes]:
    return new_resource(str(user.id), RESOURCE_TYPE, _attributes(user))


def _no_content() -> Response:
    response = Response(status=204)
    response.headers.remove("Content-Type")
    return response


class UserHandler:
    """Decodes user requests, calls the user service and encodes the result."""

    def __init__(self, service: Service) -> None:
        self._service = service

    def list(self, request: Request) -> Response:
        try:
            page_input = parse_page(request)
        except RequestError as err:
            return err.response
        try:
            page = self._service.list(page_input)
        except Exception as err:
            return error_response(err)
        doc = new_document_list(_resource(u) for u in page.items)
        doc.links = DocumentListLinks(
            next=pagination_url(request, "page[after]", page.next),
            prev=pagination_url(request, "page[before]", page.prev),
        )
        return write_json(200, doc)

    def create(self, request: Request) -> Response:
        try:
            data = decode_body(request)
            attrs = CreateUserAttributes(
                email=_string(data["attributes"], "email") or "",
                name=_string(data["attributes"], "name") or "",
            )
        except RequestError as err:
            return err.response
        try:
            user = self._service.create(CreateInput(email=attrs.email, name=attrs.name))
        except Exception as err:
            return error_response(err)
        return write_json(201, _document(user))

    def get(self, request: Request, id: str) -> Response:
        try:
            user_id = path_uuid(id, "invalid id")
        except RequestError as err:
            return err.response
        try:
            user = self._service.get_by_id(user_id)
        except Exception as err:
            return error_response(err)
        return write_json(200, _document(user))

    def update(self, request: Request, id: str) -> Response:
        try:
            user_id = path_uuid(id, "invalid id")
            data = decode_body(request)
            attrs = UpdateUserAttributes(
                email=_string(data["attributes"], "email"),
                name=_string(data["attributes"], "name"),
            )
        except RequestError as err:
            return err.response
        try:
            user = self._service.update(user_id, UpdateInput(email=attrs.email, name=attrs.name))
        except Exception as err:
            return error_response(err)
        return write_json(200, _document(user))

    def delete(self, request: Request, id: str) -> Response:
        try:
            user_id = path_uuid(id, "invalid id")
        except RequestError as err:
            return err.response
        try:
            self._service.delete(user_id)
        except Exception as err:
            return error_response(err)
        return _no_content()