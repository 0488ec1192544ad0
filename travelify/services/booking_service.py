import uuid
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from travelify.models.booking import Booking
from travelify.models.enums import BookingStatus, PaymentStatus
from travelify.models.tour import Tour
from travelify.models.user import User
from travelify.services.audit_service import log_audit
from travelify.services.errors import (
    BookingNotFound, Forbidden, InvalidSignature, InvalidTransition, NotEnoughSlots, TourNotFound, UserNotFound,
)
from travelify.services.payment_service import verify_signature
from travelify.services.razorpay_client import RazorpayClient

logger = structlog.get_logger(__name__)

DEFAULT_CANCEL_REASON = "Booking cancelled by admin"

# Cancelled is terminal; a booking never goes back to Pending.
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.APPROVED, BookingStatus.CANCELLED}),
    BookingStatus.APPROVED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}


def booking_for_payment(db: Session, payment_id: str) -> Booking | None:
    return db.execute(
        select(Booking).where(Booking.razorpay_payment_id == payment_id)
    ).scalar_one_or_none()


def _purchaser(db: Session, actor: User, user_id: str | None) -> User:
    if not user_id or user_id == actor.id:
        return actor
    if not actor.is_admin:
        raise Forbidden("Cannot book on behalf of another user")
    user = db.get(User, user_id)
    if not user:
        raise UserNotFound("User not found")
    return user


def _replayed(existing: Booking, actor: User, payment_id: str) -> Booking:
    if existing.user_id != actor.id and not actor.is_admin:
        logger.warning("payment_replay_forbidden", payment_id=payment_id, booking_id=existing.id, actor_id=actor.id)
        raise Forbidden("Payment already used for another booking")
    logger.info("payment_already_booked", payment_id=payment_id, booking_id=existing.id)
    return existing


def create_booking_from_payment(
    db: Session,
    razorpay: RazorpayClient,
    *,
    order_id: str,
    payment_id: str,
    signature: str,
    actor: User,
    tour_id: str,
    user_id: str | None = None,
    guests: int = 1,
    guest: dict | None = None,
) -> tuple[Booking, bool]:
    """Verify a checkout callback and persist its booking.

    `actor` is the authenticated caller; an admin may pass `user_id` to book
    for someone else. Returns (booking, created). A replayed callback for an
    already booked payment returns the existing booking with created=False.
    """
    if guests < 1:
        raise ValueError("numberOfGuests must be >= 1")

    # Signature first: a forged callback learns nothing about tours or users.
    if not verify_signature(razorpay, order_id, payment_id, signature):
        raise InvalidSignature("Invalid payment signature")

    user = _purchaser(db, actor, user_id)

    existing = booking_for_payment(db, payment_id)
    if existing:
        return _replayed(existing, actor, payment_id), False

    # Transactional lock to prevent overselling slots
    tour = db.execute(
        select(Tour).where(Tour.id == tour_id).with_for_update()
    ).scalar_one_or_none()
    if not tour:
        raise TourNotFound("Tour not found")
    if tour.available_slots < guests:
        raise NotEnoughSlots(f"Only {tour.available_slots} slots available")

    tour.available_slots -= guests
    guest = guest or {}
    booking = Booking(
        id=str(uuid.uuid4()),
        user_id=user.id,
        tour_id=tour.id,
        number_of_guests=guests,
        amount=int(tour.price) * guests,
        status=BookingStatus.PENDING.value,
        payment_status=PaymentStatus.PAID.value,
        razorpay_order_id=order_id,
        razorpay_payment_id=payment_id,
        razorpay_signature=signature,
        guest_name=guest.get("name") or user.name,
        guest_email=guest.get("email") or user.email,
        guest_phone=guest.get("phone") or "",
    )
    db.add(booking)
    log_audit(db, actor_user_id=actor.id, action="booking.created", entity_type="booking", entity_id=booking.id,
              details={"userId": user.id, "tourId": tour.id, "orderId": order_id, "paymentId": payment_id, "guests": guests})
    try:
        db.commit()
    except IntegrityError:
        # A concurrent duplicate callback won the unique index on razorpay_payment_id.
        db.rollback()
        existing = booking_for_payment(db, payment_id)
        if existing is None:
            raise
        return _replayed(existing, actor, payment_id), False

    db.refresh(booking)
    logger.info("booking_created", booking_id=booking.id, tour_id=tour.id, user_id=user.id, amount=booking.amount)
    return booking, True


def get_booking(db: Session, booking_id: str) -> Booking:
    booking = db.get(Booking, booking_id)
    if not booking:
        raise BookingNotFound("Booking not found")
    return booking


def list_user_bookings(db: Session, user_id: str) -> list[Booking]:
    return list(db.execute(
        select(Booking).where(Booking.user_id == user_id).order_by(Booking.created_at.desc())
    ).scalars())


def list_all_bookings(db: Session, status: BookingStatus | None = None, limit: int = 50, offset: int = 0) -> tuple[int, list[Booking]]:
    query = select(Booking)
    count_query = select(func.count(Booking.id))
    if status is not None:
        query = query.where(Booking.status == status.value)
        count_query = count_query.where(Booking.status == status.value)
    total = db.execute(count_query).scalar_one()
    items = db.execute(query.order_by(Booking.created_at.desc()).limit(limit).offset(offset)).scalars()
    return int(total), list(items)


def transition_status(db: Session, booking_id: str, target: BookingStatus, actor: User, reason: str | None = None) -> Booking:
    booking = db.execute(
        select(Booking).where(Booking.id == booking_id).with_for_update(of=Booking)
    ).scalar_one_or_none()
    if not booking:
        raise BookingNotFound("Booking not found")

    current = BookingStatus(booking.status)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot change booking from {current.value} to {target.value}")

    booking.status = target.value
    if target is BookingStatus.CANCELLED:
        booking.rejection_reason = (reason or "").strip() or DEFAULT_CANCEL_REASON
        if booking.payment_status == PaymentStatus.PAID.value:
            booking.payment_status = PaymentStatus.REFUNDED.value
        tour = db.execute(
            select(Tour).where(Tour.id == booking.tour_id).with_for_update()
        ).scalar_one_or_none()
        if tour:
            tour.available_slots += booking.number_of_guests

    log_audit(db, actor_user_id=actor.id, action="booking.status_changed", entity_type="booking", entity_id=booking.id,
              details={"from": current.value, "to": target.value, "reason": booking.rejection_reason})
    db.commit()
    db.refresh(booking)
    logger.info("booking_status_changed", booking_id=booking.id, from_status=current.value, to_status=target.value)
    return booking
