import logging
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError
from app.db.session import SessionLocal
from app.models.business import Business
from app.models.review import Review

logger = logging.getLogger(__name__)


def recompute_business_ratings(db: Session | None = None) -> dict:
    """Rebuild businesses.rating / total_reviews from the reviews table.

    Reviews update the aggregate in the same transaction, so this only repairs
    drift (manual edits, deleted reviews).
    """
    own_session = db is None
    db = db or SessionLocal()
    try:
        try:
            rows = (
                db.query(Review.business_id, func.avg(Review.rating), func.count(Review.id))
                .group_by(Review.business_id)
                .all()
            )
        except ProgrammingError:
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
        aggregates = {bid: (float(avg or 0), int(n)) for bid, avg, n in rows}

        changed = 0
        for b in db.query(Business).all():
            rating, total = aggregates.get(b.id, (0.0, 0))
            if abs((b.rating or 0.0) - rating) > 1e-9 or (b.total_reviews or 0) != total:
                b.rating = rating
                b.total_reviews = total
                changed += 1
        db.commit()
        if changed:
            logger.info("Recomputed ratings for %d businesses", changed)
        return {"updated": changed}
    finally:
        if own_session:
            db.close()
