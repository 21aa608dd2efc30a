import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_session
from app.core.security import SessionView
from app.models.customer import Vehicle
from app.schemas.customer import VehicleIn
from app.services.access_service import get_customer_profile

router = APIRouter(tags=["customers"])


def _vehicle_out(v: Vehicle) -> dict:
    return {"id": v.id, "make": v.make, "model": v.model, "year": v.year, "vin": v.vin}


@router.post("/customers/vehicles", status_code=201)
def add_vehicle(body: VehicleIn, db: Session = Depends(get_db), session: SessionView = Depends(get_session)):
    customer = get_customer_profile(db, session)
    v = Vehicle(
        id=str(uuid.uuid4()),
        customer_id=customer.id,
        make=body.make,
        model=body.model,
        year=body.year,
        vin=body.vin,
    )
    db.add(v)
    db.commit()
    return {"success": True, "data": _vehicle_out(v)}


@router.get("/customers/vehicles")
def list_vehicles(db: Session = Depends(get_db), session: SessionView = Depends(get_session)):
    customer = get_customer_profile(db, session)
    items = db.query(Vehicle).filter(Vehicle.customer_id == customer.id).order_by(Vehicle.created_at.asc()).all()
    return {"success": True, "data": [_vehicle_out(v) for v in items]}
