import uuid

import pytest
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError

from app.core.errors import (
    Conflict,
    ErrorResponse,
    NotFound,
    ValidationFailed,
    as_app_error,
    duplicate_field,
    require_args,
    translate_exception,
)
from app.models.user import User


class _FakeOrig(Exception):
    def __init__(self, message: str, pgcode: str | None = None):
        super().__init__(message)
        self.pgcode = pgcode


def _integrity(message: str, pgcode: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, _FakeOrig(message, pgcode))


def _duplicate_user_error(db) -> IntegrityError:
    email = "dup@example.com"
    for _ in range(2):
        db.add(User(id=str(uuid.uuid4()), email=email, role="CUSTOMER", password_hash="x"))
    with pytest.raises(IntegrityError) as exc_info:
        db.commit()
    db.rollback()
    return exc_info.value


def test_unique_violation_from_sqlite_names_the_column(db):
    resp = translate_exception(_duplicate_user_error(db))
    assert resp.status == 409
    assert resp.code == "DUPLICATE_FIELD"
    assert resp.field == "email"
    assert resp.message == "An account with this email address already exists"


def test_unique_violation_from_postgres_detail():
    exc = _integrity(
        'duplicate key value violates unique constraint "ix_users_phone"\n'
        "DETAIL:  Key (phone)=(+255700000000) already exists.",
        pgcode="23505",
    )
    assert duplicate_field(exc) == "phone"
    resp = translate_exception(exc)
    assert (resp.status, resp.field) == (409, "phone")
    assert resp.message == "An account with this phone number already exists"


def test_unique_violation_on_other_column_uses_generic_message():
    resp = translate_exception(_integrity("UNIQUE constraint failed: businesses.owner_id"))
    assert resp.status == 409
    assert resp.field == "owner_id"
    assert resp.message == "This information is already in use"


def test_foreign_key_violation_is_bad_request():
    resp = translate_exception(_integrity("insert violates foreign key constraint", pgcode="23503"))
    assert resp.status == 400
    assert resp.code == "INVALID_REFERENCE"
    assert resp.message == "Invalid reference data provided"


def test_record_not_found():
    resp = translate_exception(NoResultFound("No row was found"))
    assert (resp.status, resp.code) == (404, "NOT_FOUND")


def test_other_storage_errors_are_internal():
    resp = translate_exception(OperationalError("SELECT 1", {}, Exception("connection refused")))
    assert resp.status == 500
    assert resp.code == "DATABASE_ERROR"
    assert "connection refused" not in resp.message


def test_unknown_exception_is_generic_500():
    resp = translate_exception(RuntimeError("boom"))
    assert resp.status == 500
    assert resp.message == "An unexpected error occurred. Please try again."


def test_pydantic_validation_reports_first_field():
    class Body(BaseModel):
        rating: int

    with pytest.raises(ValidationError) as exc_info:
        Body(rating="not-a-number")
    resp = translate_exception(exc_info.value)
    assert resp.status == 400
    assert resp.field == "rating"


def test_app_errors_pass_through():
    resp = translate_exception(NotFound("Business not found or access denied"))
    assert resp == ErrorResponse(404, "Business not found or access denied", "NOT_FOUND", None)


def test_error_response_shape():
    body = ErrorResponse(409, "taken", "DUPLICATE_FIELD", "email").to_dict()
    assert body == {
        "success": False,
        "error": "taken",
        "message": "taken",
        "code": "DUPLICATE_FIELD",
        "field": "email",
    }
    assert "field" not in ErrorResponse(500, "x", "INTERNAL_ERROR").to_dict()


def test_as_app_error_keeps_status_class():
    err = as_app_error(_integrity("UNIQUE constraint failed: users.email"))
    assert isinstance(err, Conflict)
    assert err.field == "email"


def test_require_args():
    require_args(businessId="b-1")
    with pytest.raises(ValidationFailed) as exc_info:
        require_args(businessId="  ")
    assert exc_info.value.field == "businessId"
    with pytest.raises(ValidationFailed):
        require_args()
