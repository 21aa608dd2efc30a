from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging
from app.core.config import settings
from app.core.logging_config import setup_logging


def _redis_url_for_celery(url: str) -> str:
    """Celery requires ssl_cert_reqs for rediss:// (e.g. Upstash TLS)."""
    if not url or not url.strip().lower().startswith("rediss://"):
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    if "ssl_cert_reqs" not in qs:
        qs["ssl_cert_reqs"] = ["CERT_NONE"]
        new_query = urlencode(qs, doseq=True)
        return urlunparse(parsed._replace(query=new_query))
    return url


_redis_url = _redis_url_for_celery(settings.REDIS_URL)

celery = Celery(
    "mtokaa",
    broker=_redis_url,
    backend=_redis_url,
    include=["app.tasks.jobs"],
)


# Use the API's log format in the worker instead of Celery's own
@celery_setup_logging.connect
def on_setup_logging(**kwargs):
    setup_logging()


celery.conf.beat_schedule = {
    "recompute-business-ratings": {
        "task": "app.tasks.jobs.recompute_business_ratings",
        "schedule": settings.STATS_RATING_RECOMPUTE_SECONDS,
    },
}
