from app.tasks.celery_app import celery
from app.tasks import worker_jobs

@celery.task(name="app.tasks.jobs.recompute_business_ratings")
def recompute_business_ratings():
    return worker_jobs.recompute_business_ratings()
