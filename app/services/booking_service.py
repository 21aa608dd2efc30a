import logging
import uuid
from datetime import date
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, ValidationFailed, as_app_error
from app.core.security import SessionView
from app.models.booking import Booking
from app.models.business import Business, BusinessAddress
from app.models.enums import BookingStatus, PaymentStatus
from app.models.review import Review
from app.models.service import Service
from app.services.access_service import get_customer_profile, get_owned_business
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)

# COMPLETED and CANCELLED are terminal
STATUS_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED},
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}

CUSTOMER_CANCELLABLE = {BookingStatus.PENDING, BookingStatus.CONFIRMED}


def _address_out(a: BusinessAddress | None) -> dict | None:
    if not a:
        return None
    return {"street": a.street, "city": a.city, "state": a.state, "zipCode": a.zip_code, "country": a.country}


def _primary_address(db: Session, business_id: str) -> BusinessAddress | None:
    return (
        db.query(BusinessAddress)
        .filter(BusinessAddress.business_id == business_id, BusinessAddress.is_primary == True)
        .first()
    )


def booking_out(db: Session, b: Booking, service: Service | None = None, business: Business | None = None,
                addresses: dict[str, BusinessAddress] | None = None) -> dict:
    """Serialize a booking. Pass `addresses` (business id to primary address) when
    the caller has already batch-loaded them; otherwise they are looked up per row."""
    service = service or db.get(Service, b.service_id)
    business = business or db.get(Business, b.business_id)
    address = None
    if business is not None:
        address = addresses.get(business.id) if addresses is not None else _primary_address(db, business.id)
    return {
        "id": b.id,
        "customerId": b.customer_id,
        "businessId": b.business_id,
        "serviceId": b.service_id,
        "scheduledDate": b.scheduled_date.isoformat(),
        "scheduledTime": b.scheduled_time,
        "status": b.status,
        "paymentStatus": b.payment_status,
        "price": float(b.price),
        "totalAmount": float(b.total_amount),
        "notes": b.notes,
        "createdAt": b.created_at.isoformat() if b.created_at else None,
        "service": {
            "title": service.title,
            "description": service.description,
            "duration": service.duration,
        } if service else None,
        "business": {
            "businessName": business.business_name,
            "logo": business.logo,
            "address": _address_out(address),
        } if business else None,
    }


def create_booking(db: Session, session: SessionView, service_id: str, business_id: str,
                   scheduled_date: date, scheduled_time: str, notes: str | None = None) -> dict:
    customer = get_customer_profile(db, session)

    row = db.execute(
        select(Service, Business)
        .join(Business, Business.id == Service.business_id)
        .where(Service.id == service_id)
    ).first()
    if not row:
        raise NotFound("Service not found")
    service, business = row

    if service.business_id != business_id:
        raise ValidationFailed("Service does not belong to the specified business", field="businessId")
    if not business.is_active:
        raise ValidationFailed("Business is not currently accepting bookings", field="businessId")

    booking = Booking(
        id=str(uuid.uuid4()),
        customer_id=customer.id,
        business_id=business.id,
        service_id=service.id,
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        # snapshot: later price edits must not touch existing bookings
        price=service.price,
        total_amount=service.price,
        status=BookingStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
        notes=notes,
    )
    db.add(booking)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise as_app_error(e) from e
    db.refresh(booking)
    logger.info("Booking %s created for business %s by customer %s", booking.id, business.id, customer.id)
    return booking_out(db, booking, service, business)


def list_my_bookings(db: Session, session: SessionView, limit: int | None = None, offset: int = 0) -> list[dict]:
    customer = get_customer_profile(db, session)
    q = (
        db.query(Booking)
        .filter(Booking.customer_id == customer.id)
        .order_by(Booking.scheduled_date.desc(), Booking.created_at.desc(), Booking.id.desc())
    )
    if offset:
        q = q.offset(max(offset, 0))
    if limit is not None:
        q = q.limit(max(limit, 1))
    bookings = q.all()
    if not bookings:
        return []
    services = {
        s.id: s for s in db.query(Service).filter(Service.id.in_(list({b.service_id for b in bookings})))
    }
    businesses = {
        x.id: x for x in db.query(Business).filter(Business.id.in_(list({b.business_id for b in bookings})))
    }
    addresses = {
        a.business_id: a
        for a in db.query(BusinessAddress).filter(
            BusinessAddress.business_id.in_(list(businesses)), BusinessAddress.is_primary == True
        )
    }
    return [
        booking_out(db, b, services.get(b.service_id), businesses.get(b.business_id), addresses)
        for b in bookings
    ]


def _owned_booking(db: Session, session: SessionView, booking_id: str) -> Booking:
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFound("Booking not found")
    # same non-disclosure as the business guard
    get_owned_business(db, session, b.business_id)
    return b


def update_booking_status(db: Session, session: SessionView, booking_id: str, status: BookingStatus) -> dict:
    b = _owned_booking(db, session, booking_id)
    if status not in STATUS_TRANSITIONS[BookingStatus(b.status)]:
        raise Conflict(f"Cannot move booking from {b.status} to {status.value}", code="INVALID_TRANSITION", field="status")
    previous = b.status
    b.status = status.value
    log_audit(db, session.user_id, "booking.status_changed", "booking", b.id, {"from": previous, "to": status.value})
    db.commit()
    db.refresh(b)
    return booking_out(db, b)


def update_payment_status(db: Session, session: SessionView, booking_id: str, payment_status: PaymentStatus) -> dict:
    b = _owned_booking(db, session, booking_id)
    if payment_status not in PAYMENT_TRANSITIONS[PaymentStatus(b.payment_status)]:
        raise Conflict(
            f"Cannot move payment from {b.payment_status} to {payment_status.value}",
            code="INVALID_TRANSITION", field="paymentStatus",
        )
    previous = b.payment_status
    b.payment_status = payment_status.value
    log_audit(db, session.user_id, "booking.payment_changed", "booking", b.id, {"from": previous, "to": payment_status.value})
    db.commit()
    db.refresh(b)
    return booking_out(db, b)


def cancel_my_booking(db: Session, session: SessionView, booking_id: str) -> dict:
    customer = get_customer_profile(db, session)
    b = db.get(Booking, booking_id)
    if not b or b.customer_id != customer.id:
        raise NotFound("Booking not found")
    if BookingStatus(b.status) not in CUSTOMER_CANCELLABLE:
        raise Conflict(f"Cannot cancel a booking that is {b.status}", code="INVALID_TRANSITION", field="status")
    previous = b.status
    b.status = BookingStatus.CANCELLED.value
    log_audit(db, session.user_id, "booking.cancelled_by_customer", "booking", b.id, {"from": previous})
    db.commit()
    db.refresh(b)
    return booking_out(db, b)


def create_review(db: Session, session: SessionView, booking_id: str, rating: int, comment: str = "") -> dict:
    customer = get_customer_profile(db, session)
    b = db.get(Booking, booking_id)
    if not b or b.customer_id != customer.id:
        raise NotFound("Booking not found")
    if b.status != BookingStatus.COMPLETED:
        raise ValidationFailed("Only completed bookings can be reviewed", field="bookingId")
    if db.query(Review.id).filter(Review.booking_id == b.id).first():
        raise Conflict("This booking has already been reviewed", code="DUPLICATE_FIELD", field="bookingId")

    review = Review(
        id=str(uuid.uuid4()),
        customer_id=customer.id,
        business_id=b.business_id,
        booking_id=b.id,
        rating=rating,
        comment=comment or "",
    )
    try:
        # serialize reviews per business, then recompute the aggregate from stored rows
        db.query(Business.id).filter(Business.id == b.business_id).with_for_update().one()
        db.add(review)
        db.flush()
        db.execute(
            update(Business)
            .where(Business.id == b.business_id)
            .values(
                rating=select(func.coalesce(func.avg(Review.rating), 0.0))
                .where(Review.business_id == b.business_id)
                .scalar_subquery(),
                total_reviews=select(func.count(Review.id))
                .where(Review.business_id == b.business_id)
                .scalar_subquery(),
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise as_app_error(e) from e
    return {
        "id": review.id,
        "bookingId": b.id,
        "businessId": b.business_id,
        "rating": review.rating,
        "comment": review.comment,
    }
