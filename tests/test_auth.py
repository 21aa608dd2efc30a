import uuid

import pytest
from sqlalchemy import event

from app.core.errors import Conflict
from app.models.customer import Customer
from app.models.enums import UserRole
from app.models.user import User
from app.services import user_service

from conftest import PASSWORD


def _signup_body(**overrides):
    body = {
        "email": "neema@example.com",
        "password": "long-enough-1",
        "firstName": "Neema",
        "lastName": "Kimaro",
    }
    body.update(overrides)
    return body


@pytest.mark.parametrize("role,profiles", [
    ("CUSTOMER", 1),
    ("GARAGE_OWNER", 0),
    ("FREELANCE_MECHANIC", 0),
    ("SPAREPARTS_SHOP", 0),
])
def test_signup_creates_customer_profile_only_for_customers(client, db, role, profiles):
    r = client.post("/api/v1/auth/signup", json=_signup_body(role=role))
    assert r.status_code == 201
    user_id = r.json()["user"]["id"]
    assert r.json()["user"]["role"] == role
    assert db.query(Customer).filter(Customer.user_id == user_id).count() == profiles


def test_signup_defaults_to_customer(client, db):
    r = client.post("/api/v1/auth/signup", json=_signup_body())
    assert r.status_code == 201
    assert r.json()["message"] == "User created successfully"
    assert r.json()["user"]["role"] == "CUSTOMER"
    assert db.query(Customer).count() == 1


def test_signup_rejects_admin_role(client, db):
    r = client.post("/api/v1/auth/signup", json=_signup_body(role="ADMIN"))
    assert r.status_code == 400
    assert r.json()["field"] == "role"
    assert db.query(User).count() == 0


def test_duplicate_email_is_conflict(client):
    assert client.post("/api/v1/auth/signup", json=_signup_body()).status_code == 201
    r = client.post("/api/v1/auth/signup", json=_signup_body(firstName="Other"))
    assert r.status_code == 409
    assert r.json()["field"] == "email"
    assert r.json()["code"] == "DUPLICATE_FIELD"


def test_duplicate_phone_is_conflict(client):
    assert client.post("/api/v1/auth/signup", json=_signup_body(phone="+255 700 111 222")).status_code == 201
    r = client.post("/api/v1/auth/signup", json=_signup_body(email="other@example.com", phone="+255 700 111 222"))
    assert r.status_code == 409
    assert r.json()["field"] == "phone"


def test_signup_validation_errors(client):
    r = client.post("/api/v1/auth/signup", json=_signup_body(email="not-an-email"))
    assert r.status_code == 400
    assert r.json()["field"] == "email"
    r = client.post("/api/v1/auth/signup", json=_signup_body(password="short"))
    assert r.status_code == 400
    assert r.json()["field"] == "password"


def test_signup_rejects_malformed_domain_and_lowercases_email(client, db):
    r = client.post("/api/v1/auth/signup", json=_signup_body(email="neema@exa..mple.com"))
    assert r.status_code == 400
    assert r.json()["field"] == "email"

    r = client.post("/api/v1/auth/signup", json=_signup_body(email="Neema.Mushi@Example.COM"))
    assert r.status_code == 201
    assert db.query(User).filter(User.email == "neema.mushi@example.com").count() == 1


def test_losing_a_signup_race_is_conflict_on_email(db):
    """The pre-check passes, then a competing insert lands before our flush."""
    email = "race@example.com"

    def competing_insert(session, flush_context, instances):
        session.connection().execute(User.__table__.insert().values(
            id=str(uuid.uuid4()), email=email, first_name="First", last_name="Winner",
            role="CUSTOMER", password_hash="x",
        ))

    event.listen(db, "before_flush", competing_insert, once=True)
    with pytest.raises(Conflict) as exc_info:
        user_service.signup(db, email=email, password="long-enough-1", first_name="Second", last_name="Loser")

    assert exc_info.value.status_code == 409
    assert exc_info.value.field == "email"
    # the whole transaction is rolled back, so no orphan customer profile is left
    assert db.query(User).filter(User.email == email).count() == 0
    assert db.query(Customer).count() == 0


def test_check_user_by_email_and_phone(client, make_user, make_business):
    owner = make_user(UserRole.GARAGE_OWNER, email="owner@example.com", phone="+255711000000")
    make_business(owner)

    r = client.post("/api/v1/auth/check-user", json={"identifier": "OWNER@example.com"})
    assert r.status_code == 200
    assert r.json()["exists"] is True
    assert r.json()["hasBusiness"] is True
    assert r.json()["user"]["phone"] == "+255711000000"

    r = client.post("/api/v1/auth/check-user", json={"identifier": "+255711000000"})
    assert r.json()["user"]["id"] == owner.id


def test_check_user_unknown_and_blank(client):
    r = client.post("/api/v1/auth/check-user", json={"identifier": "nobody@example.com"})
    assert r.json() == {"exists": False, "user": None, "hasBusiness": False}
    r = client.post("/api/v1/auth/check-user", json={"identifier": "  "})
    assert r.status_code == 400
    assert r.json()["message"] == "Email or phone number is required"


def test_login_and_refresh(client, make_user):
    user = make_user(UserRole.CUSTOMER, email="login@example.com")
    r = client.post("/api/v1/auth/login", json={"email": "login@example.com", "password": PASSWORD})
    assert r.status_code == 200
    tokens = r.json()
    assert tokens["user"]["id"] == user.id

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.json()["id"] == user.id

    r = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert r.status_code == 200
    assert r.json()["access_token"]


def test_refresh_rejects_access_token(client, make_user):
    make_user(UserRole.CUSTOMER, email="login@example.com")
    tokens = client.post("/api/v1/auth/login", json={"email": "login@example.com", "password": PASSWORD}).json()
    r = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert r.status_code == 401


def test_login_failures(client, make_user):
    make_user(UserRole.CUSTOMER, email="login@example.com")
    make_user(UserRole.CUSTOMER, email="gone@example.com", is_active=False)

    r = client.post("/api/v1/auth/login", json={"email": "missing@example.com", "password": PASSWORD})
    assert (r.status_code, r.json()["message"]) == (401, "No account found with this email address")
    r = client.post("/api/v1/auth/login", json={"email": "login@example.com", "password": "nope"})
    assert (r.status_code, r.json()["message"]) == (401, "Incorrect password")
    r = client.post("/api/v1/auth/login", json={"email": "gone@example.com", "password": PASSWORD})
    assert r.status_code == 401
    assert r.json()["code"] == "ACCOUNT_DISABLED"


def test_business_lookup_by_user(client, make_user, make_business):
    owner = make_user(UserRole.GARAGE_OWNER)
    business = make_business(owner)
    r = client.get("/api/v1/business/my-business", params={"userId": owner.id})
    assert r.status_code == 200
    assert r.json()["business"]["id"] == business.id
    assert client.get("/api/v1/business/my-business").status_code == 400
    assert client.get("/api/v1/business/my-business", params={"userId": "nope"}).status_code == 404
