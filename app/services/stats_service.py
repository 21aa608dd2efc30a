"""Dashboard aggregates for a single business and for the public landing page.

Month windows are server-local calendar months: ``[first-of-month 00:00,
first-of-next-month)``. Month-over-month figures bucket bookings by
``created_at``; the six-month chart buckets them by ``scheduled_date``.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.business import Business, BusinessAddress
from app.models.customer import Customer, Vehicle
from app.models.enums import BookingStatus, PaymentStatus, ServiceStatus
from app.models.review import Review
from app.models.service import Service
from app.models.user import User

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


# -------------------------
# pure helpers
# -------------------------
def month_start(d: datetime, shift: int = 0) -> datetime:
    """First instant of the month ``shift`` months away from ``d``'s month."""
    idx = d.year * 12 + (d.month - 1) + shift
    return d.replace(year=idx // 12, month=idx % 12 + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


def month_bounds(now: datetime) -> tuple[datetime, datetime, datetime]:
    """(previous month start, current month start, next month start)."""
    return month_start(now, -1), month_start(now), month_start(now, 1)


def percent_change(current, previous) -> str:
    current = float(current or 0)
    previous = float(previous or 0)
    if previous == 0:
        return "+100%" if current > 0 else "0%"
    change = (current - previous) / previous * 100
    return f"+{change:.1f}%" if change >= 0 else f"{change:.1f}%"


def rating_change(current: float | None, previous: float | None) -> str:
    if current is None or previous is None:
        return "0.0"
    return f"{current - previous:+.1f}"


def completion_rate(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return min(max(completed / total * 100, 0.0), 100.0)


def repeat_customer_percentage(bookings_per_customer: Iterable[int]) -> float:
    counts = list(bookings_per_customer)
    if not counts:
        return 0.0
    return sum(1 for c in counts if c > 1) / len(counts) * 100


def average(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def round_half_up(x: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(x * factor + 0.5) / factor


def _utc(dt: datetime) -> datetime:
    # naive values are server-local wall clock
    return dt.astimezone(timezone.utc)


# -------------------------
# queries
# -------------------------
def _month_summary(db: Session, business_id: str, start: datetime, end: datetime) -> dict:
    window = (
        Booking.business_id == business_id,
        Booking.created_at >= _utc(start),
        Booking.created_at < _utc(end),
    )
    bookings = db.query(func.count(Booking.id)).filter(*window).scalar() or 0
    revenue = (
        db.query(func.coalesce(func.sum(Booking.total_amount), 0))
        .filter(*window, Booking.status == BookingStatus.COMPLETED.value)
        .scalar()
    )
    customers = db.query(func.count(distinct(Booking.customer_id))).filter(*window).scalar() or 0
    return {"bookings": int(bookings), "revenue": float(revenue or 0), "customers": int(customers)}


def _avg_rating(db: Session, business_id: str, start: datetime | None = None, end: datetime | None = None) -> float | None:
    q = db.query(func.avg(Review.rating)).filter(Review.business_id == business_id)
    if start is not None:
        q = q.filter(Review.created_at >= _utc(start), Review.created_at < _utc(end))
    value = q.scalar()
    return float(value) if value is not None else None


def _bookings_per_customer(db: Session, business_id: str) -> list[int]:
    rows = (
        db.query(Booking.customer_id, func.count(Booking.id))
        .filter(Booking.business_id == business_id)
        .group_by(Booking.customer_id)
        .all()
    )
    return [int(n) for _, n in rows]


def business_stats(db: Session, business_id: str, now: datetime | None = None) -> dict:
    now = now or datetime.now()
    prev_start, cur_start, next_start = month_bounds(now)

    current = _month_summary(db, business_id, cur_start, next_start)
    previous = _month_summary(db, business_id, prev_start, cur_start)

    total_bookings = db.query(func.count(Booking.id)).filter(Booking.business_id == business_id).scalar() or 0
    completed = (
        db.query(func.count(Booking.id))
        .filter(Booking.business_id == business_id, Booking.status == BookingStatus.COMPLETED.value)
        .scalar() or 0
    )
    total_revenue = (
        db.query(func.coalesce(func.sum(Booking.total_amount), 0))
        .filter(Booking.business_id == business_id, Booking.status == BookingStatus.COMPLETED.value)
        .scalar()
    )
    per_customer = _bookings_per_customer(db, business_id)

    return {
        "totalRevenue": float(total_revenue or 0),
        "totalBookings": int(total_bookings),
        "totalCustomers": len(per_customer),
        "avgRating": _avg_rating(db, business_id) or 0.0,
        "completionRate": completion_rate(int(completed), int(total_bookings)),
        "repeatCustomersPercentage": repeat_customer_percentage(per_customer),
        "revenueChange": percent_change(current["revenue"], previous["revenue"]),
        "bookingsChange": percent_change(current["bookings"], previous["bookings"]),
        "customersChange": percent_change(current["customers"], previous["customers"]),
        "ratingChange": rating_change(
            _avg_rating(db, business_id, cur_start, next_start),
            _avg_rating(db, business_id, prev_start, cur_start),
        ),
        "currentMonth": current,
        "previousMonth": previous,
    }


def business_performance(db: Session, business_id: str, now: datetime | None = None) -> dict:
    now = now or datetime.now()
    _, cur_start, next_start = month_bounds(now)
    window = (
        Booking.business_id == business_id,
        Booking.created_at >= _utc(cur_start),
        Booking.created_at < _utc(next_start),
    )
    month_total = db.query(func.count(Booking.id)).filter(*window).scalar() or 0
    month_completed = (
        db.query(func.count(Booking.id))
        .filter(*window, Booking.status == BookingStatus.COMPLETED.value)
        .scalar() or 0
    )
    satisfaction = _avg_rating(db, business_id) or 0.0
    return {
        "customerSatisfaction": round_half_up(satisfaction, 1),
        "completionRate": int(round_half_up(completion_rate(int(month_completed), int(month_total)))),
        "repeatCustomers": int(round_half_up(repeat_customer_percentage(_bookings_per_customer(db, business_id)))),
    }


def business_chart_data(db: Session, business_id: str, now: datetime | None = None) -> dict:
    """Booking counts and PAID revenue for the last six calendar months, oldest first."""
    now = now or datetime.now()
    months = [month_start(now, -i) for i in range(5, -1, -1)]
    first_day = months[0].date()
    end_day = month_start(now, 1).date()

    rows = (
        db.query(Booking.scheduled_date, Booking.total_amount, Booking.payment_status)
        .filter(
            Booking.business_id == business_id,
            Booking.scheduled_date >= first_day,
            Booking.scheduled_date < end_day,
        )
        .all()
    )
    bookings = {(m.year, m.month): 0 for m in months}
    revenue = {(m.year, m.month): 0.0 for m in months}
    for scheduled, amount, payment_status in rows:
        key = (scheduled.year, scheduled.month)
        bookings[key] += 1
        if payment_status == PaymentStatus.PAID.value:
            revenue[key] += float(amount or 0)

    return {
        "revenue": [{"month": MONTH_NAMES[m.month - 1], "revenue": revenue[(m.year, m.month)]} for m in months],
        "bookings": [{"month": MONTH_NAMES[m.month - 1], "bookings": bookings[(m.year, m.month)]} for m in months],
    }


def business_customers(db: Session, business_id: str) -> dict:
    rows = (
        db.query(Booking, Customer, User)
        .join(Customer, Customer.id == Booking.customer_id)
        .outerjoin(User, User.id == Customer.user_id)
        .filter(Booking.business_id == business_id)
        .order_by(Booking.created_at.asc())
        .all()
    )
    customers: dict[str, dict] = {}
    last_visit: dict[str, date] = {}
    for b, c, u in rows:
        entry = customers.get(c.id)
        if entry is None:
            entry = customers[c.id] = {
                "id": c.id,
                "name": (u.full_name if u else "") or "Unknown Customer",
                "email": u.email if u else "",
                "phone": (u.phone if u else "") or "",
                "status": "active" if (u is None or u.is_active) else "inactive",
                "totalBookings": 0,
                "totalSpent": 0.0,
                "rating": 0.0,
                "vehicles": [],
            }
        entry["totalBookings"] += 1
        entry["totalSpent"] += float(b.total_amount or 0)
        if c.id not in last_visit or b.scheduled_date > last_visit[c.id]:
            last_visit[c.id] = b.scheduled_date

    if customers:
        ids = list(customers)
        for v in db.query(Vehicle).filter(Vehicle.customer_id.in_(ids)).order_by(Vehicle.created_at.asc()).all():
            customers[v.customer_id]["vehicles"].append(
                {"id": v.id, "year": v.year, "make": v.make, "model": v.model, "vin": v.vin}
            )
        ratings = (
            db.query(Review.customer_id, func.avg(Review.rating))
            .filter(Review.business_id == business_id, Review.customer_id.in_(ids))
            .group_by(Review.customer_id)
            .all()
        )
        for customer_id, avg in ratings:
            customers[customer_id]["rating"] = round_half_up(float(avg), 1)

    out = []
    for customer_id, entry in customers.items():
        visit = last_visit.get(customer_id)
        out.append({**entry, "lastVisit": visit.isoformat() if visit else "Never"})

    rated = [c["rating"] for c in out if c["rating"] > 0]
    return {
        "customers": out,
        "stats": {
            "total": len(out),
            "active": sum(1 for c in out if c["status"] == "active"),
            "totalSpent": sum(c["totalSpent"] for c in out),
            "avgRating": round_half_up(average(rated), 1),
        },
    }


def platform_stats(db: Session) -> dict:
    active_businesses = db.query(func.count(Business.id)).filter(Business.is_active == True).scalar() or 0
    verified = (
        db.query(func.count(Business.id))
        .filter(Business.is_active == True, Business.is_verified == True)
        .scalar() or 0
    )
    active_users = db.query(func.count(User.id)).filter(User.is_active == True).scalar() or 0
    services = (
        db.query(func.count(Service.id))
        .filter(Service.status == ServiceStatus.AVAILABLE.value)
        .scalar() or 0
    )
    total_bookings = db.query(func.count(Booking.id)).scalar() or 0
    completed = (
        db.query(func.count(Booking.id))
        .filter(Booking.status == BookingStatus.COMPLETED.value)
        .scalar() or 0
    )
    cities = (
        db.query(func.count(distinct(BusinessAddress.city)))
        .join(Business, Business.id == BusinessAddress.business_id)
        .filter(Business.is_active == True)
        .scalar() or 0
    )
    avg_rating = (
        db.query(func.avg(Business.rating))
        .filter(Business.is_active == True, Business.total_reviews > 0)
        .scalar()
    )
    by_type = (
        db.query(Business.business_type, func.count(Business.id))
        .filter(Business.is_active == True)
        .group_by(Business.business_type)
        .all()
    )
    return {
        "stats": [
            {"value": f"{verified}+", "label": "Verified Professionals", "count": int(verified)},
            {"value": f"{active_users}+", "label": "Happy Customers", "count": int(active_users)},
            {"value": f"{cities}+", "label": "Cities Covered", "count": int(cities)},
            {"value": "24/7", "label": "Emergency Support", "count": None},
        ],
        "details": {
            "activeBusinesses": int(active_businesses),
            "totalServices": int(services),
            "totalBookings": int(total_bookings),
            "completedBookings": int(completed),
            "averageRating": f"{round_half_up(float(avg_rating or 0), 1):.1f}",
            "businessTypes": [{"businessType": t, "count": int(n)} for t, n in by_type],
        },
    }
