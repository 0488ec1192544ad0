from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError, ProgrammingError
import structlog

from travelify.db.session import SessionLocal
from travelify.services import email_service

logger = structlog.get_logger(__name__)


def deliver_email(email_id: str) -> dict:
    """Send one outbox message. Send errors propagate so Celery retries the task."""
    db: Session = SessionLocal()
    try:
        return email_service.deliver(db, email_id)
    finally:
        db.close()


def process_email_queue(limit: int = 50) -> dict:
    """Process queued/failed emails (retry send). Run periodically via Celery beat."""
    db: Session = SessionLocal()
    try:
        try:
            result = email_service.process_pending_emails(db, limit=limit)
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
        if result["processed"]:
            logger.info("email_queue_processed", **result)
        return result
    finally:
        db.close()
