import logging
import uuid
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, as_app_error, require_args
from app.core.security import SessionView
from app.models.booking import Booking
from app.models.business import Business, BusinessAddress, BusinessHours
from app.models.customer import Customer
from app.models.enums import ROLE_TO_BUSINESS_TYPE, ServiceStatus, UserRole
from app.models.service import Service
from app.models.user import User
from app.schemas.business import BusinessCreate

logger = logging.getLogger(__name__)

# business_hours.day_of_week numbering
DAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


def business_out(b: Business, addresses: list[BusinessAddress] | None = None) -> dict:
    out = {
        "id": b.id,
        "ownerId": b.owner_id,
        "businessName": b.business_name,
        "businessType": b.business_type,
        "description": b.description,
        "logo": b.logo,
        "isVerified": b.is_verified,
        "isActive": b.is_active,
        "rating": b.rating or 0.0,
        "totalReviews": b.total_reviews or 0,
        "createdAt": b.created_at.isoformat() if b.created_at else None,
        "updatedAt": b.updated_at.isoformat() if b.updated_at else None,
    }
    if addresses is not None:
        out["addresses"] = [{
            "isPrimary": a.is_primary,
            "street": a.street,
            "city": a.city,
            "state": a.state,
            "zipCode": a.zip_code,
            "country": a.country,
        } for a in addresses]
    return out


def service_out(s: Service) -> dict:
    return {
        "id": s.id,
        "businessId": s.business_id,
        "title": s.title,
        "description": s.description,
        "price": float(s.price),
        "duration": s.duration,
        "status": s.status,
    }


def _addresses(db: Session, business_id: str) -> list[BusinessAddress]:
    return (
        db.query(BusinessAddress)
        .filter(BusinessAddress.business_id == business_id)
        .order_by(BusinessAddress.is_primary.desc())
        .all()
    )


def create_business(db: Session, session: SessionView, body: BusinessCreate) -> Business:
    # Fast path; businesses.owner_id is unique, so a concurrent second insert fails at commit.
    if db.query(Business.id).filter(Business.owner_id == session.user_id).first():
        raise Conflict("Business profile already exists", field="ownerId")

    business = Business(
        id=str(uuid.uuid4()),
        owner_id=session.user_id,
        business_name=body.businessName,
        description=body.description,
        business_type=ROLE_TO_BUSINESS_TYPE[UserRole(body.businessType)].value,
        license_number=body.licenseNumber,
        is_active=True,
        is_verified=False,
    )
    db.add(business)
    try:
        db.flush()
        db.add(BusinessAddress(
            id=str(uuid.uuid4()),
            business_id=business.id,
            street=body.address.street,
            city=body.address.city,
            state=body.address.state,
            zip_code=body.address.zipCode,
            country=body.address.country,
            is_primary=True,
        ))
        for index, day in enumerate(DAYS):
            hours = getattr(body.workingHours, day)
            db.add(BusinessHours(
                id=str(uuid.uuid4()),
                business_id=business.id,
                day_of_week=index,
                open_time=hours.open,
                close_time=hours.close,
                is_closed=not hours.isOpen,
            ))
        db.commit()
    except IntegrityError as e:
        db.rollback()
        err = as_app_error(e)
        if err.field == "owner_id":
            raise Conflict("Business profile already exists", field="ownerId") from e
        raise err from e
    db.refresh(business)
    logger.info("Business %s created for owner %s", business.id, session.user_id)
    return business


def get_my_business(db: Session, session: SessionView) -> dict:
    b = db.query(Business).filter(Business.owner_id == session.user_id).first()
    if not b:
        raise NotFound("Business profile not found")
    return business_out(b, _addresses(db, b.id))


def get_business_for_user(db: Session, user_id: str | None) -> dict:
    require_args(userId=user_id)
    b = db.query(Business).filter(Business.owner_id == user_id).first()
    if not b:
        raise NotFound("No business found for this user")
    return business_out(b)


def create_service(db: Session, business: Business, title: str, price, duration: int,
                   description: str | None = None) -> Service:
    s = Service(
        id=str(uuid.uuid4()),
        business_id=business.id,
        title=title,
        description=description,
        price=price,
        duration=duration,
        status=ServiceStatus.AVAILABLE.value,
    )
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def list_services(db: Session, business_id: str, available_only: bool = False) -> list[dict]:
    q = db.query(Service).filter(Service.business_id == business_id)
    if available_only:
        q = q.filter(Service.status == ServiceStatus.AVAILABLE.value)
    return [service_out(s) for s in q.order_by(Service.created_at.asc()).all()]


def list_public_services(db: Session, business_id: str | None) -> list[dict]:
    require_args(businessId=business_id)
    b = db.get(Business, business_id)
    if not b or not b.is_active:
        raise NotFound("Business not found")
    return list_services(db, b.id, available_only=True)


def recent_bookings(db: Session, business: Business, limit: int) -> list[dict]:
    rows = (
        db.query(Booking, Service, User)
        .join(Service, Service.id == Booking.service_id)
        .join(Customer, Customer.id == Booking.customer_id)
        .outerjoin(User, User.id == Customer.user_id)
        .filter(Booking.business_id == business.id)
        .order_by(Booking.scheduled_date.desc(), Booking.created_at.desc())
        .limit(limit)
        .all()
    )
    return [{
        "id": b.id,
        "customerName": (u.full_name if u else "") or "Unknown Customer",
        "service": s.title if s else "Unknown Service",
        "date": b.scheduled_date.isoformat(),
        "time": b.scheduled_time,
        "status": b.status.lower(),
        "price": float(b.price),
    } for b, s, u in rows]
