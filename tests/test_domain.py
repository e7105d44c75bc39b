import pytest

from servicetemplate.domain import (
    ConflictError,
    DomainError,
    NotFoundError,
    Page,
    PageCursor,
    PageInput,
    ValidationError,
)


def test_errors_are_distinct():
    not_found = NotFoundError()
    conflict = ConflictError()
    validation = ValidationError()
    assert not isinstance(not_found, ConflictError)
    assert not isinstance(not_found, ValidationError)
    assert not isinstance(conflict, ValidationError)
    assert not isinstance(conflict, NotFoundError)
    assert not isinstance(validation, NotFoundError)
    assert not isinstance(validation, ConflictError)
    assert len({str(not_found), str(conflict), str(validation)}) == 3


@pytest.mark.parametrize("cls", [NotFoundError, ConflictError, ValidationError])
def test_errors_share_base(cls):
    err = cls("boom")
    assert isinstance(err, DomainError)
    assert str(err).endswith(": boom")


def test_error_messages():
    assert str(NotFoundError()) == "not found"
    assert str(ConflictError()) == "conflict"
    assert str(ValidationError("name is required")) == "validation error: name is required"


def test_error_keeps_detail():
    err = ConflictError("key exists")
    assert err.detail == "key exists"
    assert str(err) == "conflict: key exists"


def test_page_input_defaults():
    page = PageInput()
    assert page.size == 0
    assert page.after is None
    assert page.before is None


def test_page_input_equality():
    assert PageInput(size=5, after=PageCursor(3)) == PageInput(size=5, after=PageCursor(3))
    assert PageInput(size=5) != PageInput(size=6)


def test_page_defaults_are_empty_and_independent():
    first, second = Page(), Page()
    first.items.append(1)
    assert second.items == []
    assert first.next is None and first.prev is None


def test_page_cursor_is_immutable():
    cursor = PageCursor(7)
    with pytest.raises(AttributeError):
        cursor.id = 8  # type: ignore[misc]
    assert cursor.id == 7