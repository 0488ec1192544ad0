from travelify.tasks.celery_app import celery
from travelify.tasks import worker_jobs


@celery.task(
    name="travelify.tasks.jobs.deliver_email",
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    max_retries=5,
)
def deliver_email(email_id: str):
    return worker_jobs.deliver_email(email_id)


@celery.task(name="travelify.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50):
    return worker_jobs.process_email_queue(limit=limit)
