from app.models.business import Business
from app.models.enums import BookingStatus, UserRole
from app.models.review import Review
from app.models.user import User
from app.seed import run as run_seed
from app.tasks.worker_jobs import recompute_business_ratings


def test_recompute_repairs_drifted_ratings(db, make_user, make_business, make_service, make_booking, customer_of):
    garage = make_business(make_user(UserRole.GARAGE_OWNER))
    idle = make_business(make_user(UserRole.GARAGE_OWNER), name="Idle Garage")
    service = make_service(garage)
    customer = customer_of(make_user(UserRole.CUSTOMER))
    for i, rating in enumerate((5, 3)):
        booking = make_booking(customer, service, status=BookingStatus.COMPLETED)
        db.add(Review(id=f"r-{i}", customer_id=customer.id, business_id=garage.id,
                      booking_id=booking.id, rating=rating))
    garage.rating, garage.total_reviews = 1.0, 7
    idle.rating, idle.total_reviews = 4.0, 1
    db.commit()

    assert recompute_business_ratings(db) == {"updated": 2}
    db.expire_all()
    assert (db.get(Business, garage.id).rating, db.get(Business, garage.id).total_reviews) == (4.0, 2)
    assert (db.get(Business, idle.id).rating, db.get(Business, idle.id).total_reviews) == (0.0, 0)

    assert recompute_business_ratings(db) == {"updated": 0}


def test_seed_is_idempotent(session_factory):
    run_seed(session_factory())
    run_seed(session_factory())
    db = session_factory()
    try:
        assert db.query(User).count() == 3
        assert db.query(Business).count() == 1
    finally:
        db.close()
