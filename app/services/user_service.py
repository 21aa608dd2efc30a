import logging
import uuid
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Unauthenticated, ValidationFailed, as_app_error, require_args
from app.core.security import verify_password, hash_password
from app.models.business import Business
from app.models.customer import Customer
from app.models.enums import UserRole
from app.models.user import User

logger = logging.getLogger(__name__)


def user_summary(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "role": u.role,
    }


def signup(db: Session, email: str, password: str, first_name: str, last_name: str,
           phone: str | None = None, role: UserRole | None = None) -> User:
    role = role or UserRole.CUSTOMER
    if role == UserRole.ADMIN:
        raise ValidationFailed("Admin accounts cannot be created through signup", field="role")

    # Fast path only: two concurrent signups can both get past these checks.
    # The unique indexes on users.email / users.phone decide the race at commit.
    if db.query(User.id).filter(User.email == email).first():
        raise Conflict("An account with this email address already exists", code="DUPLICATE_FIELD", field="email")
    if phone and db.query(User.id).filter(User.phone == phone).first():
        raise Conflict("An account with this phone number already exists", code="DUPLICATE_FIELD", field="phone")

    user = User(
        id=str(uuid.uuid4()),
        email=email,
        phone=phone,
        first_name=first_name,
        last_name=last_name,
        role=role.value,
        password_hash=hash_password(password),
        is_active=True,
        is_verified=False,
    )
    db.add(user)
    # flush the user first so the customer's FK has a row to point at
    try:
        db.flush()
        if role == UserRole.CUSTOMER:
            db.add(Customer(id=str(uuid.uuid4()), user_id=user.id))
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise as_app_error(e) from e
    db.refresh(user)
    logger.info("User %s signed up with role %s", user.id, user.role)
    return user


def check_user(db: Session, identifier: str | None) -> dict:
    try:
        require_args(identifier=identifier)
    except ValidationFailed:
        raise ValidationFailed("Email or phone number is required", field="identifier")
    ident = identifier.strip()
    user = (
        db.query(User)
        .filter(or_(func.lower(User.email) == ident.lower(), User.phone == ident))
        .first()
    )
    if not user:
        return {"exists": False, "user": None, "hasBusiness": False}
    has_business = db.query(Business.id).filter(Business.owner_id == user.id).first() is not None
    return {
        "exists": True,
        "user": {**user_summary(user), "phone": user.phone},
        "hasBusiness": has_business,
    }


def authenticate(db: Session, email: str, password: str) -> User:
    require_args(email=email, password=password)
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        raise Unauthenticated("No account found with this email address", code="INVALID_CREDENTIALS")
    if not user.is_active:
        raise Unauthenticated("Your account has been deactivated. Please contact support.", code="ACCOUNT_DISABLED")
    if not verify_password(password, user.password_hash):
        raise Unauthenticated("Incorrect password", code="INVALID_CREDENTIALS")
    return user
