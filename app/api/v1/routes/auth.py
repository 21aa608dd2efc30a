from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from jose import JWTError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import SignupRequest, CheckUserRequest, LoginRequest, RefreshRequest, TokenPair
from app.models.user import User
from app.core.errors import Unauthenticated
from app.core.security import SessionView, build_token_claims, create_access_token, create_refresh_token, decode_token
from app.api.deps import get_session
from app.services import user_service

router = APIRouter(tags=["auth"])


def _token_pair(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(build_token_claims(user)),
        refresh_token=create_refresh_token(user.id),
        user=user_service.user_summary(user),
    )


@router.post("/auth/signup", status_code=201)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    user = user_service.signup(
        db,
        email=body.email,
        password=body.password,
        first_name=body.firstName,
        last_name=body.lastName,
        phone=body.phone,
        role=body.role,
    )
    return JSONResponse(
        status_code=201,
        content={"message": "User created successfully", "user": user_service.user_summary(user)},
    )


@router.post("/auth/check-user")
def check_user(body: CheckUserRequest, db: Session = Depends(get_db)):
    return user_service.check_user(db, body.identifier)


@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = user_service.authenticate(db, body.email, body.password)
    return _token_pair(user)


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    """Re-read the user and issue a fresh snapshot of role/active flags."""
    try:
        payload = decode_token(body.refresh_token)
    except JWTError:
        raise Unauthenticated("Invalid refresh token")
    if payload.get("type") != "refresh":
        raise Unauthenticated("Invalid refresh token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise Unauthenticated("User not found or inactive")
    return _token_pair(user)


@router.get("/auth/me")
def me(session: SessionView = Depends(get_session)):
    """Return the caller as recorded in their token."""
    return session.to_dict()
