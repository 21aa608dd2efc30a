from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from app.core.config import settings

# PBKDF2 avoids bcrypt backend/version issues and the 72-byte bcrypt input limit.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


@dataclass(frozen=True)
class SessionView:
    """What a request knows about its caller: a snapshot taken at sign-in.

    Role and active/verified flags are not re-read from the database on each
    request, so admin changes only take effect once the user signs in again.
    """
    user_id: str
    role: str
    is_verified: bool
    is_active: bool
    first_name: str
    last_name: str
    email: str = ""

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "isVerified": self.is_verified,
            "isActive": self.is_active,
        }


def build_token_claims(user) -> dict:
    return {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "isVerified": bool(user.is_verified),
        "isActive": bool(user.is_active),
        "firstName": user.first_name or "",
        "lastName": user.last_name or "",
    }


def session_view(claims: dict) -> SessionView:
    return SessionView(
        user_id=str(claims["sub"]),
        role=str(claims.get("role") or ""),
        is_verified=bool(claims.get("isVerified", False)),
        is_active=bool(claims.get("isActive", False)),
        first_name=str(claims.get("firstName") or ""),
        last_name=str(claims.get("lastName") or ""),
        email=str(claims.get("email") or ""),
    )


def create_access_token(claims: dict, expires_minutes: int | None = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    exp = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {**claims, "type": "access", "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def create_refresh_token(subject: str, expires_days: int | None = None) -> str:
    if expires_days is None:
        expires_days = settings.REFRESH_TOKEN_EXPIRE_DAYS
    exp = datetime.now(timezone.utc) + timedelta(days=expires_days)
    payload = {"sub": subject, "type": "refresh", "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
