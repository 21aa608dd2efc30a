"""Cookie-consent preferences, persisted per user.

One ``ConsentManager`` is built per process (see ``app.main``) and handed to
routes through ``Depends(get_consent_manager)``; tests build their own.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.orm import Session

from app.models.consent import ConsentRecord

logger = logging.getLogger(__name__)

CATEGORIES = ("necessary", "analytics", "marketing", "location")

ConsentListener = Callable[[Session, str, dict], None]


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def consent_to_dict(rec: ConsentRecord) -> dict:
    return {
        "necessary": True,
        "analytics": bool(rec.analytics),
        "marketing": bool(rec.marketing),
        "location": bool(rec.location),
        "version": rec.version,
        "timestamp": _as_utc(rec.consented_at).isoformat(),
    }


class ConsentManager:
    def __init__(self, version: str, max_age_days: int = 365):
        self.version = version
        self.max_age = timedelta(days=max_age_days)
        self._listeners: list[ConsentListener] = []

    def add_listener(self, listener: ConsentListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ConsentListener) -> None:
        self._listeners = [l for l in self._listeners if l is not listener]

    def _is_valid(self, rec: ConsentRecord, now: datetime) -> bool:
        return rec.version == self.version and now - _as_utc(rec.consented_at) < self.max_age

    def get(self, db: Session, user_id: str, now: datetime | None = None) -> dict | None:
        now = now or datetime.now(timezone.utc)
        rec = db.query(ConsentRecord).filter(ConsentRecord.user_id == user_id).first()
        if not rec:
            return None
        if not self._is_valid(rec, now):
            logger.info("Discarding stale consent for user %s (version=%s)", user_id, rec.version)
            db.delete(rec)
            db.commit()
            return None
        return consent_to_dict(rec)

    def set(self, db: Session, user_id: str, preferences: dict) -> dict:
        rec = db.query(ConsentRecord).filter(ConsentRecord.user_id == user_id).first()
        if not rec:
            rec = ConsentRecord(id=str(uuid.uuid4()), user_id=user_id)
            db.add(rec)
        rec.necessary = True
        rec.analytics = bool(preferences.get("analytics", False))
        rec.marketing = bool(preferences.get("marketing", False))
        rec.location = bool(preferences.get("location", False))
        rec.version = self.version
        rec.consented_at = datetime.now(timezone.utc)
        consent = consent_to_dict(rec)
        self._notify(db, user_id, consent)
        db.commit()
        return consent

    def update(self, db: Session, user_id: str, updates: dict) -> dict | None:
        current = self.get(db, user_id)
        if current is None:
            return None
        merged = {k: current[k] for k in CATEGORIES}
        merged.update({k: v for k, v in updates.items() if k in CATEGORIES and v is not None})
        return self.set(db, user_id, merged)

    def revoke(self, db: Session, user_id: str) -> dict | None:
        if self.get(db, user_id) is None:
            return None
        return self.set(db, user_id, {"analytics": False, "marketing": False, "location": False})

    def _notify(self, db: Session, user_id: str, consent: dict) -> None:
        for listener in list(self._listeners):
            try:
                listener(db, user_id, consent)
            except Exception:
                logger.exception("Consent listener %r failed", listener)
