from datetime import datetime, timedelta, timezone

from app.models.audit_log import AuditLog
from app.models.consent import ConsentRecord
from app.models.enums import UserRole
from app.services.consent_service import ConsentManager


def test_set_forces_necessary_and_stamps_version(db, make_user):
    user = make_user(UserRole.CUSTOMER)
    manager = ConsentManager("2.0")
    consent = manager.set(db, user.id, {"necessary": False, "analytics": True})
    assert consent["necessary"] is True
    assert consent["analytics"] is True
    assert consent["marketing"] is False
    assert consent["version"] == "2.0"
    assert manager.get(db, user.id)["analytics"] is True


def test_version_bump_discards_old_consent(db, make_user):
    user = make_user(UserRole.CUSTOMER)
    ConsentManager("1.0").set(db, user.id, {"marketing": True})
    assert ConsentManager("1.1").get(db, user.id) is None
    assert db.query(ConsentRecord).count() == 0


def test_expired_consent_is_discarded(db, make_user):
    user = make_user(UserRole.CUSTOMER)
    manager = ConsentManager("1.0", max_age_days=30)
    manager.set(db, user.id, {"location": True})
    later = datetime.now(timezone.utc) + timedelta(days=31)
    assert manager.get(db, user.id, now=later) is None


def test_update_and_revoke(db, make_user):
    user = make_user(UserRole.CUSTOMER)
    manager = ConsentManager("1.0")
    assert manager.update(db, user.id, {"analytics": True}) is None
    assert manager.revoke(db, user.id) is None

    manager.set(db, user.id, {"analytics": True, "marketing": True})
    updated = manager.update(db, user.id, {"marketing": False})
    assert (updated["analytics"], updated["marketing"]) == (True, False)

    revoked = manager.revoke(db, user.id)
    assert not any(revoked[k] for k in ("analytics", "marketing", "location"))
    assert revoked["necessary"] is True


def test_listeners_are_notified_and_failures_isolated(db, make_user):
    user = make_user(UserRole.CUSTOMER)
    manager = ConsentManager("1.0")
    seen = []

    def broken(db, user_id, consent):
        raise RuntimeError("listener down")

    def record(db, user_id, consent):
        seen.append((user_id, consent["analytics"]))

    manager.add_listener(broken)
    manager.add_listener(record)
    manager.set(db, user.id, {"analytics": True})
    assert seen == [(user.id, True)]

    manager.remove_listener(record)
    manager.set(db, user.id, {"analytics": False})
    assert len(seen) == 1


def test_managers_do_not_share_state(db, make_user):
    user = make_user(UserRole.CUSTOMER)
    a, b = ConsentManager("1.0"), ConsentManager("1.0")
    calls = []
    a.add_listener(lambda db, user_id, consent: calls.append(user_id))
    b.set(db, user.id, {})
    assert calls == []


def test_consent_routes(client, db, make_user, auth_headers):
    user = make_user(UserRole.CUSTOMER)
    headers = auth_headers(user)

    r = client.get("/api/v1/consent", headers=headers)
    assert r.json() == {"hasConsent": False, "consent": None}
    assert client.patch("/api/v1/consent", headers=headers, json={"analytics": True}).status_code == 404

    r = client.put("/api/v1/consent", headers=headers, json={"analytics": True, "location": True})
    assert r.status_code == 200
    assert r.json()["consent"]["location"] is True

    r = client.patch("/api/v1/consent", headers=headers, json={"location": False})
    assert r.json()["consent"]["analytics"] is True
    assert r.json()["consent"]["location"] is False

    r = client.delete("/api/v1/consent", headers=headers)
    assert r.json()["consent"]["analytics"] is False

    # the application's audit listener recorded each change
    db.expire_all()
    actions = db.query(AuditLog).filter(AuditLog.entity_type == "consent", AuditLog.entity_id == user.id).count()
    assert actions == 3


def test_consent_requires_session(client):
    assert client.get("/api/v1/consent").status_code == 401
