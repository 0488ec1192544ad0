from datetime import datetime, timezone
import smtplib
from email.message import EmailMessage
from email.utils import parseaddr
from sqlalchemy.orm import Session
import uuid
import requests
import structlog

from travelify.core.config import settings
from travelify.models.email_log import EmailLog

logger = structlog.get_logger(__name__)


def queue_email(db: Session, to_email: str, subject: str, body: str, related_booking_id: str = "") -> str:
    """Store the message in the outbox and hand its id to the worker.

    Delivery happens outside the request; the body is stored so the
    worker (and the periodic sweep) can retry on failure.
    """
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject,
            body=body,
            status="queued",
            related_booking_id=related_booking_id,
        )
    )
    db.commit()

    try:
        dispatch_email(eid)
    except Exception:
        # Broker down: the row stays queued and process_email_queue picks it up.
        logger.warning("email_dispatch_failed", email_id=eid, exc_info=True)

    return eid


def dispatch_email(email_id: str) -> None:
    from travelify.tasks.jobs import deliver_email
    deliver_email.delay(email_id)


def deliver(db: Session, email_id: str) -> dict:
    """Send one outbox row. Raises on send failure so the task can retry."""
    log = db.get(EmailLog, email_id)
    if not log:
        return {"skipped": True, "reason": "not_found"}
    if log.status == "sent":
        return {"skipped": True, "reason": "already_sent"}

    log.attempts = (log.attempts or 0) + 1
    try:
        send_email(log.to_email, log.subject, log.body or "")
    except Exception:
        log.status = "failed"
        db.commit()
        logger.warning("email_send_failed", email_id=email_id, to=log.to_email, attempts=log.attempts, exc_info=True)
        raise
    log.status = "sent"
    log.sent_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("email_sent", email_id=email_id, to=log.to_email)
    return {"sent": True}


def send_email(to_email: str, subject: str, body: str):
    """Send email via SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.MAIL_DRY_RUN:
        logger.info("email_dry_run", to=to_email, subject=subject, body=body)
        return

    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg["Reply-To"] = settings.SMTP_USERNAME or parseaddr(settings.SMTP_FROM)[1]
    msg.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.starttls()
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str):
    from_email = settings.SENDGRID_FROM_EMAIL or parseaddr(settings.SMTP_FROM)[1]
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email, "name": "Travelify Team"},
        "subject": subject,
        "content": [{"type": "text/plain", "value": body}],
    }

    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50, max_attempts: int = 10) -> dict:
    """Process up to `limit` queued or failed emails; retry send and update status. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(
            EmailLog.status.in_(["queued", "failed"]),
            EmailLog.attempts < max_attempts,
            EmailLog.body.isnot(None),
            EmailLog.body != "",
        )
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        log.attempts = (log.attempts or 0) + 1
        try:
            send_email(log.to_email, log.subject, log.body)
            log.status = "sent"
            log.sent_at = datetime.now(timezone.utc)
            sent += 1
        except Exception:
            logger.warning("email_send_failed", email_id=log.id, to=log.to_email, attempts=log.attempts, exc_info=True)
            log.status = "failed"
            failed += 1
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": failed}
