from app.models.audit_log import AuditLog
from app.models.business import Business
from app.models.enums import UserRole
from app.models.user import User


def test_admin_routes_require_admin(client, make_user, auth_headers):
    owner = make_user(UserRole.GARAGE_OWNER)
    assert client.get("/api/v1/admin/users", headers=auth_headers(owner)).status_code == 403
    assert client.get("/api/v1/admin/users").status_code == 401


def test_admin_lists_and_filters_users(client, make_user, auth_headers):
    admin = make_user(UserRole.ADMIN, email="root@example.com")
    make_user(UserRole.CUSTOMER, email="zawadi@example.com", first="Zawadi")
    make_user(UserRole.GARAGE_OWNER, email="owner@example.com")

    r = client.get("/api/v1/admin/users", headers=auth_headers(admin))
    assert r.json()["total"] == 3
    r = client.get("/api/v1/admin/users", headers=auth_headers(admin), params={"role": "GARAGE_OWNER"})
    assert [u["email"] for u in r.json()["items"]] == ["owner@example.com"]
    r = client.get("/api/v1/admin/users", headers=auth_headers(admin), params={"q": "zawa"})
    assert r.json()["total"] == 1


def test_deactivation_applies_at_next_sign_in(client, db, make_user, auth_headers):
    admin = make_user(UserRole.ADMIN)
    user = make_user(UserRole.CUSTOMER, email="later@example.com")
    old_headers = auth_headers(user)

    r = client.patch(f"/api/v1/admin/users/{user.id}", headers=auth_headers(admin), params={"isActive": False})
    assert r.json() == {"ok": True}

    # the existing token is a snapshot and keeps working until it expires
    assert client.get("/api/v1/auth/me", headers=old_headers).status_code == 200
    r = client.post("/api/v1/auth/login", json={"email": "later@example.com", "password": "secret-pass-123"})
    assert r.status_code == 401

    db.expire_all()
    assert db.get(User, user.id).is_active is False
    assert db.query(AuditLog).filter(AuditLog.action == "user.updated").count() == 1


def test_admin_rejects_unknown_role(client, make_user, auth_headers):
    admin = make_user(UserRole.ADMIN)
    user = make_user(UserRole.CUSTOMER)
    r = client.patch(f"/api/v1/admin/users/{user.id}", headers=auth_headers(admin), params={"role": "PILOT"})
    assert r.status_code == 400
    assert client.patch("/api/v1/admin/users/missing", headers=auth_headers(admin)).status_code == 404


def test_admin_deactivates_business(client, db, make_user, make_business, make_service, auth_headers):
    admin = make_user(UserRole.ADMIN)
    garage = make_business(make_user(UserRole.GARAGE_OWNER))
    make_service(garage)

    r = client.patch(f"/api/v1/admin/businesses/{garage.id}", headers=auth_headers(admin),
                     params={"isActive": False})
    assert r.json()["business"]["isActive"] is False
    db.expire_all()
    assert db.get(Business, garage.id).is_active is False
    assert client.get("/api/v1/services", params={"businessId": garage.id}).status_code == 404
