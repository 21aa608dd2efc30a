"""Ownership and profile checks shared by every business- or customer-scoped route."""

from sqlalchemy.orm import Session

from app.core.errors import NotFound, require_args
from app.core.security import SessionView
from app.models.business import Business
from app.models.customer import Customer


def get_owned_business(db: Session, session: SessionView, business_id: str | None) -> Business:
    """Return the business if the caller owns it.

    A business that exists but belongs to someone else is reported exactly like a
    missing one, so callers cannot discover other tenants' ids.
    """
    require_args(businessId=business_id)
    business = (
        db.query(Business)
        .filter(Business.id == business_id, Business.owner_id == session.user_id)
        .first()
    )
    if not business:
        raise NotFound("Business not found or access denied")
    return business


def get_customer_profile(db: Session, session: SessionView) -> Customer:
    customer = db.query(Customer).filter(Customer.user_id == session.user_id).first()
    if not customer:
        raise NotFound("Customer profile not found")
    return customer
