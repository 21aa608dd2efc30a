from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_session, get_consent_manager
from app.core.errors import NotFound
from app.core.security import SessionView
from app.schemas.consent import ConsentPreferences, ConsentPatch
from app.services.consent_service import ConsentManager

router = APIRouter(tags=["consent"])


@router.get("/consent")
def get_consent(db: Session = Depends(get_db),
                session: SessionView = Depends(get_session),
                manager: ConsentManager = Depends(get_consent_manager)):
    consent = manager.get(db, session.user_id)
    return {"hasConsent": consent is not None, "consent": consent}


@router.put("/consent")
def set_consent(body: ConsentPreferences,
                db: Session = Depends(get_db),
                session: SessionView = Depends(get_session),
                manager: ConsentManager = Depends(get_consent_manager)):
    return {"hasConsent": True, "consent": manager.set(db, session.user_id, body.model_dump())}


@router.patch("/consent")
def update_consent(body: ConsentPatch,
                   db: Session = Depends(get_db),
                   session: SessionView = Depends(get_session),
                   manager: ConsentManager = Depends(get_consent_manager)):
    consent = manager.update(db, session.user_id, body.model_dump(exclude_none=True))
    if consent is None:
        raise NotFound("No consent recorded yet")
    return {"hasConsent": True, "consent": consent}


@router.delete("/consent")
def revoke_consent(db: Session = Depends(get_db),
                   session: SessionView = Depends(get_session),
                   manager: ConsentManager = Depends(get_consent_manager)):
    consent = manager.revoke(db, session.user_id)
    if consent is None:
        raise NotFound("No consent recorded yet")
    return {"hasConsent": True, "consent": consent}
