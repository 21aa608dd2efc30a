import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.session import Base, get_db
from app.core.security import build_token_claims, create_access_token, hash_password
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.booking import Booking
from app.models.business import Business, BusinessAddress
from app.models.consent import ConsentRecord  # noqa: F401
from app.models.customer import Customer
from app.models.enums import BookingStatus, BusinessType, PaymentStatus, ServiceStatus, UserRole
from app.models.review import Review  # noqa: F401
from app.models.service import Service
from app.models.user import User

PASSWORD = "secret-pass-123"


@pytest.fixture()
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(role: UserRole = UserRole.CUSTOMER, email: str | None = None, phone: str | None = None,
              first: str = "Test", last: str = "User", is_active: bool = True) -> User:
        u = User(
            id=str(uuid.uuid4()),
            email=email or f"{uuid.uuid4().hex[:10]}@example.com",
            phone=phone,
            first_name=first,
            last_name=last,
            role=role.value,
            password_hash=hash_password(PASSWORD),
            is_active=is_active,
            is_verified=True,
        )
        db.add(u)
        db.flush()
        if role == UserRole.CUSTOMER:
            db.add(Customer(id=str(uuid.uuid4()), user_id=u.id))
        db.commit()
        return u
    return _make


@pytest.fixture()
def customer_of(db):
    def _get(user: User) -> Customer:
        return db.query(Customer).filter(Customer.user_id == user.id).one()
    return _get


@pytest.fixture()
def make_business(db):
    def _make(owner: User, name: str = "Kariakoo Garage", is_active: bool = True, city: str = "Dar es Salaam",
              business_type: BusinessType = BusinessType.GARAGE) -> Business:
        b = Business(
            id=str(uuid.uuid4()),
            owner_id=owner.id,
            business_name=name,
            business_type=business_type.value,
            is_active=is_active,
            is_verified=True,
        )
        db.add(b)
        db.flush()
        db.add(BusinessAddress(
            id=str(uuid.uuid4()), business_id=b.id, street="12 Uhuru St", city=city,
            state="Dar es Salaam", zip_code="11101", country="Tanzania", is_primary=True,
        ))
        db.commit()
        return b
    return _make


@pytest.fixture()
def make_service(db):
    def _make(business: Business, title: str = "Oil change", price: str = "45.00", duration: int = 45) -> Service:
        s = Service(
            id=str(uuid.uuid4()),
            business_id=business.id,
            title=title,
            description="Engine oil and filter",
            price=Decimal(price),
            duration=duration,
            status=ServiceStatus.AVAILABLE.value,
        )
        db.add(s)
        db.commit()
        return s
    return _make


@pytest.fixture()
def make_booking(db):
    def _make(customer: Customer, service: Service, scheduled: date = date(2026, 5, 20),
              status: BookingStatus = BookingStatus.PENDING,
              payment_status: PaymentStatus = PaymentStatus.PENDING,
              created_at: datetime | None = None) -> Booking:
        b = Booking(
            id=str(uuid.uuid4()),
            customer_id=customer.id,
            business_id=service.business_id,
            service_id=service.id,
            scheduled_date=scheduled,
            scheduled_time="10:00",
            price=service.price,
            total_amount=service.price,
            status=status.value,
            payment_status=payment_status.value,
            created_at=created_at or datetime.now(timezone.utc),
        )
        db.add(b)
        db.commit()
        return b
    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(build_token_claims(user))}"}
    return _headers
