"""Booking emails. Every function here is best effort: failures are logged, never raised."""
from sqlalchemy.orm import Session
import structlog

from travelify.models.booking import Booking
from travelify.models.enums import BookingStatus
from travelify.services.email_service import queue_email

logger = structlog.get_logger(__name__)


def _recipient(b: Booking) -> str:
    return b.guest_email or (b.user.email if b.user else "")


def _details(b: Booking) -> str:
    tour = b.tour
    return (
        f"- Tour: {tour.title if tour else b.tour_id}\n"
        f"- Location: {tour.location if tour else ''}\n"
        f"- Number of Guests: {b.number_of_guests}\n"
        f"- Total Amount: ₹{b.amount:,}\n"
        f"- Booking ID: {b.id}\n"
    )


def booking_received_email(b: Booking) -> tuple[str, str]:
    subject = "Booking Confirmation - Travelify"
    body = (
        f"Dear {b.guest_name},\n\n"
        "Thank you for booking with Travelify! Your payment has been received.\n\n"
        f"{_details(b)}"
        "- Booking Status: Pending Admin Approval\n\n"
        "You will receive another email once your booking is reviewed.\n\n"
        "Travelify Team\n"
    )
    return subject, body


def status_changed_email(b: Booking, reason: str | None = None) -> tuple[str, str]:
    """Subject and body for a status change. `reason` is what the admin typed, if anything."""
    status = BookingStatus(b.status)
    if status is BookingStatus.APPROVED:
        subject = "Booking Confirmed - Travelify"
        body = (
            f"Dear {b.guest_name},\n\n"
            "Great news! Your booking has been confirmed.\n\n"
            f"{_details(b)}"
            "- Booking Status: Confirmed\n\n"
            "Travelify Team\n"
        )
    elif status is BookingStatus.CANCELLED:
        subject = "Booking Cancelled - Travelify"
        body = (
            f"Dear {b.guest_name},\n\n"
            "We regret to inform you that your booking has been cancelled.\n\n"
            f"{_details(b)}"
            f"- Booking Status: Cancelled\n"
            f"- Payment Status: {b.payment_status}\n\n"
            f"Reason for Cancellation:\n{(reason or '').strip() or 'No specific reason provided.'}\n\n"
            "Your payment will be refunded to your original payment method within 5-7 business days.\n\n"
            "Travelify Team\n"
        )
    elif status is BookingStatus.PENDING:
        raise ValueError("no status email for Pending bookings")
    else:
        raise ValueError(f"unknown booking status {status!r}")
    return subject, body


def _queue(db: Session, b: Booking, subject: str, body: str) -> str | None:
    to = _recipient(b)
    if not to:
        logger.warning("booking_email_skipped", booking_id=b.id, reason="no_recipient")
        return None
    try:
        return queue_email(db, to, subject, body, related_booking_id=b.id)
    except Exception:
        db.rollback()
        logger.exception("booking_email_failed", booking_id=b.id)
        return None


def notify_booking_received(db: Session, b: Booking) -> str | None:
    subject, body = booking_received_email(b)
    return _queue(db, b, subject, body)


def notify_status_changed(db: Session, b: Booking, reason: str | None = None) -> str | None:
    subject, body = status_changed_email(b, reason)
    return _queue(db, b, subject, body)
