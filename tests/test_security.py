from types import SimpleNamespace

from app.core.security import (
    build_token_claims,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    session_view,
    verify_password,
)
from app.models.enums import UserRole


def _user(**overrides):
    data = dict(
        id="u-1", email="amina@example.com", role="GARAGE_OWNER", is_verified=True,
        is_active=True, first_name="Amina", last_name="Mushi",
    )
    data.update(overrides)
    return SimpleNamespace(**data)


def test_password_hash_roundtrip():
    h = hash_password("hunter22-long")
    assert h != "hunter22-long"
    assert verify_password("hunter22-long", h)
    assert not verify_password("wrong", h)


def test_claims_to_session_view_is_pure():
    claims = build_token_claims(_user())
    view = session_view(claims)
    assert view.user_id == "u-1"
    assert view.role == "GARAGE_OWNER"
    assert view.name == "Amina Mushi"
    assert view.is_active and view.is_verified
    assert session_view(claims) == view


def test_token_carries_snapshot():
    token = create_access_token(build_token_claims(_user(is_verified=False)))
    payload = decode_token(token)
    assert payload["type"] == "access"
    view = session_view(payload)
    assert view.is_verified is False
    assert view.to_dict()["email"] == "amina@example.com"


def test_refresh_token_is_not_an_access_token():
    payload = decode_token(create_refresh_token("u-1"))
    assert payload["type"] == "refresh"
    assert payload["sub"] == "u-1"


def test_protected_route_requires_token(client):
    r = client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_garbage_token_is_rejected(client):
    r = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid or expired token"


def test_refresh_token_cannot_be_used_as_access(client):
    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {create_refresh_token('u-1')}"})
    assert r.status_code == 401


def test_expired_token_is_rejected(client):
    token = create_access_token(build_token_claims(_user()), expires_minutes=-1)
    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_deactivated_snapshot_is_rejected(client):
    token = create_access_token(build_token_claims(_user(is_active=False)))
    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_me_returns_token_snapshot(client, make_user, auth_headers):
    user = make_user(UserRole.SPAREPARTS_SHOP, first="Juma", last="Said")
    r = client.get("/api/v1/auth/me", headers=auth_headers(user))
    assert r.status_code == 200
    assert r.json()["name"] == "Juma Said"
    assert r.json()["role"] == "SPAREPARTS_SHOP"


def test_request_id_header_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert r.status_code == 200
    assert r.headers["X-Request-ID"] == "req-42"
