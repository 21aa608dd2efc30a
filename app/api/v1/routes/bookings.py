from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_session
from app.core.config import settings
from app.core.security import SessionView
from app.schemas.booking import BookingCreate, ReviewCreate
from app.services import booking_service

router = APIRouter(tags=["bookings"])


@router.post("/bookings")
def create_booking(body: BookingCreate,
                   db: Session = Depends(get_db),
                   session: SessionView = Depends(get_session)):
    booking = booking_service.create_booking(
        db,
        session,
        service_id=body.serviceId,
        business_id=body.businessId,
        scheduled_date=body.scheduledDate,
        scheduled_time=body.scheduledTime,
        notes=body.notes,
    )
    return {"success": True, "data": booking, "message": "Booking created successfully"}


@router.get("/bookings")
def list_my_bookings(limit: int | None = Query(None, ge=1), offset: int = Query(0, ge=0),
                     db: Session = Depends(get_db),
                     session: SessionView = Depends(get_session)):
    if limit is not None:
        limit = min(limit, settings.MAX_PAGE_SIZE)
    return {"success": True, "data": booking_service.list_my_bookings(db, session, limit=limit, offset=offset)}


@router.post("/bookings/{booking_id}/cancel")
def cancel_booking(booking_id: str,
                   db: Session = Depends(get_db),
                   session: SessionView = Depends(get_session)):
    return {"success": True, "data": booking_service.cancel_my_booking(db, session, booking_id)}


@router.post("/bookings/{booking_id}/review", status_code=201)
def review_booking(booking_id: str, body: ReviewCreate,
                   db: Session = Depends(get_db),
                   session: SessionView = Depends(get_session)):
    review = booking_service.create_review(db, session, booking_id, body.rating, body.comment)
    return {"success": True, "data": review}
