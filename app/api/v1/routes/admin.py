from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.db.session import get_db
from app.api.deps import require_roles
from app.core.config import settings
from app.core.errors import NotFound, ValidationFailed
from app.core.security import SessionView
from app.models.business import Business
from app.models.enums import UserRole
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.business_service import business_out

router = APIRouter(tags=["admin"])

_admin = require_roles(UserRole.ADMIN)


@router.get("/admin/users")
def list_users(role: str | None = None, q: str | None = None, limit: int = 50, offset: int = 0,
               db: Session = Depends(get_db),
               me: SessionView = Depends(_admin)):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(
            func.lower(User.email).like(ql)
            | func.lower(User.first_name).like(ql)
            | func.lower(User.last_name).like(ql)
        )
    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id)
        .limit(min(max(limit, 1), settings.MAX_PAGE_SIZE))
        .offset(max(offset, 0))
        .all()
    )
    return {
        "total": total,
        "items": [{
            "id": u.id,
            "email": u.email,
            "firstName": u.first_name,
            "lastName": u.last_name,
            "role": u.role,
            "isActive": u.is_active,
            "isVerified": u.is_verified,
            "createdAt": u.created_at.isoformat(),
        } for u in users],
    }


@router.patch("/admin/users/{user_id}")
def update_user(user_id: str, role: str | None = None, isActive: bool | None = None, isVerified: bool | None = None,
                db: Session = Depends(get_db),
                me: SessionView = Depends(_admin)):
    """Changes reach the user's session only after they sign in again."""
    u = db.get(User, user_id)
    if not u:
        raise NotFound("User not found")
    if role is not None:
        if role not in {r.value for r in UserRole}:
            raise ValidationFailed("invalid role", field="role")
        u.role = role
    if isActive is not None:
        u.is_active = bool(isActive)
    if isVerified is not None:
        u.is_verified = bool(isVerified)
    log_audit(db, me.user_id, "user.updated", "user", u.id,
              {"role": u.role, "isActive": u.is_active, "isVerified": u.is_verified})
    db.commit()
    return {"ok": True}


@router.patch("/admin/businesses/{business_id}")
def update_business(business_id: str, isActive: bool | None = None, isVerified: bool | None = None,
                    db: Session = Depends(get_db),
                    me: SessionView = Depends(_admin)):
    b = db.get(Business, business_id)
    if not b:
        raise NotFound("Business not found")
    if isActive is not None:
        b.is_active = bool(isActive)
    if isVerified is not None:
        b.is_verified = bool(isVerified)
    log_audit(db, me.user_id, "business.updated", "business", b.id,
              {"isActive": b.is_active, "isVerified": b.is_verified})
    db.commit()
    db.refresh(b)
    return {"ok": True, "business": business_out(b)}
