import logging
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, OperationalError

from app.db.session import SessionLocal
from app.core.security import hash_password
from app.models.business import Business, BusinessAddress, BusinessHours
from app.models.customer import Customer
from app.models.enums import BusinessType, ServiceStatus, UserRole
from app.models.service import Service
from app.models.user import User

logger = logging.getLogger(__name__)

DEMO_SERVICES = [
    ("Oil change", "Engine oil and filter replacement", Decimal("45.00"), 45),
    ("Brake inspection", "Pads, discs and fluid check", Decimal("30.00"), 30),
    ("Full service", "Manufacturer-schedule full service", Decimal("180.00"), 180),
]


def ensure_user(db: Session, email: str, password: str, role: UserRole, first: str, last: str) -> User:
    u = db.query(User).filter(User.email == email).first()
    if u:
        return u
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        first_name=first,
        last_name=last,
        role=role.value,
        password_hash=hash_password(password),
        is_active=True,
        is_verified=True,
    )
    db.add(u)
    db.flush()
    if role == UserRole.CUSTOMER:
        db.add(Customer(id=str(uuid.uuid4()), user_id=u.id))
    db.commit()
    return u


def ensure_demo_garage(db: Session, owner: User) -> Business:
    b = db.query(Business).filter(Business.owner_id == owner.id).first()
    if b:
        return b
    b = Business(
        id=str(uuid.uuid4()),
        owner_id=owner.id,
        business_name="Mtokaa Demo Garage",
        description="Seeded garage for local development",
        business_type=BusinessType.GARAGE.value,
        is_active=True,
        is_verified=True,
    )
    db.add(b)
    db.flush()
    db.add(BusinessAddress(
        id=str(uuid.uuid4()), business_id=b.id, street="1 Demo Road", city="Dar es Salaam",
        state="Dar es Salaam", zip_code="11101", country="Tanzania", is_primary=True,
    ))
    for day in range(7):
        db.add(BusinessHours(
            id=str(uuid.uuid4()), business_id=b.id, day_of_week=day,
            open_time="08:00", close_time="18:00", is_closed=(day == 0),
        ))
    for title, description, price, duration in DEMO_SERVICES:
        db.add(Service(
            id=str(uuid.uuid4()), business_id=b.id, title=title, description=description,
            price=price, duration=duration, status=ServiceStatus.AVAILABLE.value,
        ))
    db.commit()
    return b


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "admin@mtokaa.local", "admin12345", UserRole.ADMIN, "Admin", "User")
        owner = ensure_user(db, "garage@mtokaa.local", "garage12345", UserRole.GARAGE_OWNER, "Garage", "Owner")
        ensure_user(db, "customer@mtokaa.local", "customer12345", UserRole.CUSTOMER, "Demo", "Customer")
        ensure_demo_garage(db, owner)
        logger.info("Seed data ensured")
    finally:
        db.close()


if __name__ == "__main__":
    from app.core.logging_config import setup_logging
    setup_logging()
    run()
