from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_session, require_roles
from app.core.config import settings
from app.core.security import SessionView
from app.models.enums import PROVIDER_ROLES
from app.schemas.booking import BookingStatusUpdate, PaymentStatusUpdate
from app.schemas.business import BusinessCreate, ServiceCreate
from app.services import booking_service, business_service, stats_service
from app.services.access_service import get_owned_business

router = APIRouter(tags=["business"])


# -------------------------
# PROFILE
# -------------------------
@router.post("/business")
def create_business(body: BusinessCreate,
                    db: Session = Depends(get_db),
                    session: SessionView = Depends(require_roles(*PROVIDER_ROLES))):
    b = business_service.create_business(db, session, body)
    return {
        "message": "Business profile created successfully",
        "business": {"id": b.id, "businessName": b.business_name, "businessType": b.business_type},
    }


@router.get("/business")
def get_my_business(db: Session = Depends(get_db), session: SessionView = Depends(get_session)):
    return {"business": business_service.get_my_business(db, session)}


@router.get("/business/my-business")
def get_business_for_user(userId: str | None = None, db: Session = Depends(get_db)):
    return {"success": True, "business": business_service.get_business_for_user(db, userId)}


# -------------------------
# SERVICES
# -------------------------
@router.post("/business/services", status_code=201)
def create_service(body: ServiceCreate,
                   db: Session = Depends(get_db),
                   session: SessionView = Depends(get_session)):
    business = get_owned_business(db, session, body.businessId)
    s = business_service.create_service(db, business, body.title, body.price, body.duration, body.description)
    return {"success": True, "data": business_service.service_out(s)}


@router.get("/business/services")
def list_business_services(businessId: str | None = None,
                           db: Session = Depends(get_db),
                           session: SessionView = Depends(get_session)):
    business = get_owned_business(db, session, businessId)
    return {"success": True, "data": business_service.list_services(db, business.id)}


@router.get("/services")
def list_public_services(businessId: str | None = None, db: Session = Depends(get_db)):
    return {"success": True, "data": business_service.list_public_services(db, businessId)}


# -------------------------
# BOOKINGS
# -------------------------
@router.get("/business/bookings")
def list_business_bookings(businessId: str | None = None, limit: int | None = Query(None, ge=1),
                           db: Session = Depends(get_db),
                           session: SessionView = Depends(get_session)):
    business = get_owned_business(db, session, businessId)
    limit = min(limit or settings.BUSINESS_BOOKINGS_DEFAULT_LIMIT, settings.MAX_PAGE_SIZE)
    return {"bookings": business_service.recent_bookings(db, business, limit)}


@router.patch("/business/bookings/{booking_id}/status")
def update_booking_status(booking_id: str, body: BookingStatusUpdate,
                          db: Session = Depends(get_db),
                          session: SessionView = Depends(get_session)):
    return {"success": True, "data": booking_service.update_booking_status(db, session, booking_id, body.status)}


@router.patch("/business/bookings/{booking_id}/payment")
def update_payment_status(booking_id: str, body: PaymentStatusUpdate,
                          db: Session = Depends(get_db),
                          session: SessionView = Depends(get_session)):
    return {"success": True, "data": booking_service.update_payment_status(db, session, booking_id, body.paymentStatus)}


# -------------------------
# DASHBOARD METRICS
# -------------------------
@router.get("/business/stats")
def business_stats(businessId: str | None = None,
                   db: Session = Depends(get_db),
                   session: SessionView = Depends(get_session)):
    business = get_owned_business(db, session, businessId)
    return {"success": True, "stats": stats_service.business_stats(db, business.id)}


@router.get("/business/performance")
def business_performance(businessId: str | None = None,
                         db: Session = Depends(get_db),
                         session: SessionView = Depends(get_session)):
    business = get_owned_business(db, session, businessId)
    return {"performance": stats_service.business_performance(db, business.id)}


@router.get("/business/chart-data")
def business_chart_data(businessId: str | None = None,
                        db: Session = Depends(get_db),
                        session: SessionView = Depends(get_session)):
    business = get_owned_business(db, session, businessId)
    return {"chartData": stats_service.business_chart_data(db, business.id)}


@router.get("/business/customers")
def business_customers(businessId: str | None = None,
                       db: Session = Depends(get_db),
                       session: SessionView = Depends(get_session)):
    business = get_owned_business(db, session, businessId)
    return stats_service.business_customers(db, business.id)


@router.get("/stats")
def platform_stats(db: Session = Depends(get_db)):
    return {"success": True, "data": stats_service.platform_stats(db)}
