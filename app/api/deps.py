from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from app.core.errors import Unauthenticated, Forbidden
from app.core.security import SessionView, decode_token, session_view
from app.services.consent_service import ConsentManager

bearer = HTTPBearer(auto_error=False)

def get_session(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> SessionView:
    if not creds:
        raise Unauthenticated("Authentication required")
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise Unauthenticated("Invalid or expired token")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise Unauthenticated("Invalid or expired token")
    session = session_view(payload)
    if not session.is_active:
        raise Unauthenticated("Your account has been deactivated. Please contact support.")
    return session

def require_roles(*roles: str):
    def _guard(session: SessionView = Depends(get_session)) -> SessionView:
        if session.role not in roles:
            raise Forbidden("Forbidden")
        return session
    return _guard

def get_consent_manager(request: Request) -> ConsentManager:
    return request.app.state.consent_manager
