from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import structlog

from travelify.db.session import get_db
from travelify.api.deps import get_current_user, get_razorpay_client, require_admin
from travelify.models.booking import Booking
from travelify.models.enums import BookingStatus
from travelify.models.user import User
from travelify.schemas.booking import (
    AuditEntryOut, BookingCancelRequest, BookingHistoryOut, BookingListOut, BookingOut, BookingStatusOut,
    BookingStatusUpdate, BookingTourOut, BookingUserOut, GuestOut, VerifyPaymentOut,
)
from travelify.schemas.common import paginate
from travelify.schemas.payments import CreateOrderRequest, VerifyPaymentRequest
from travelify.services import booking_service, notification_service, payment_service
from travelify.services.audit_service import entity_history
from travelify.services.razorpay_client import RazorpayClient, RazorpayError

router = APIRouter(prefix="/bookings", tags=["bookings"])
logger = structlog.get_logger(__name__)


def booking_out(b: Booking) -> BookingOut:
    return BookingOut(
        id=b.id,
        user=BookingUserOut(id=b.user.id, name=b.user.name, email=b.user.email) if b.user else None,
        tour=BookingTourOut(id=b.tour.id, title=b.tour.title, location=b.tour.location,
                            price=b.tour.price, image=b.tour.image or "") if b.tour else None,
        numberOfGuests=b.number_of_guests,
        amount=b.amount,
        status=b.status,
        paymentStatus=b.payment_status,
        razorpayOrderId=b.razorpay_order_id,
        razorpayPaymentId=b.razorpay_payment_id,
        guestDetails=GuestOut(name=b.guest_name or "", email=b.guest_email or "", phone=b.guest_phone or ""),
        rejectionReason=b.rejection_reason,
        createdAt=b.created_at,
        updatedAt=b.updated_at,
    )


@router.post("/create-order")
def create_order(body: CreateOrderRequest,
                 me: User = Depends(get_current_user),
                 razorpay: RazorpayClient = Depends(get_razorpay_client)):
    notes = {**(body.notes or {}), "userId": me.id}
    try:
        return payment_service.create_order(razorpay, body.amount, notes=notes)
    except RazorpayError as e:
        logger.error("razorpay_order_failed", user_id=me.id, amount=body.amount, error=str(e))
        raise HTTPException(status_code=500, detail="Error creating payment order")


@router.post("/verify", response_model=VerifyPaymentOut, status_code=201)
@router.post("/verify-payment", response_model=VerifyPaymentOut, status_code=201, include_in_schema=False)
def verify_payment(body: VerifyPaymentRequest,
                   db: Session = Depends(get_db),
                   me: User = Depends(get_current_user),
                   razorpay: RazorpayClient = Depends(get_razorpay_client)):
    booking, created = booking_service.create_booking_from_payment(
        db,
        razorpay,
        order_id=body.razorpay_order_id,
        payment_id=body.razorpay_payment_id,
        signature=body.razorpay_signature,
        actor=me,
        tour_id=body.tourId,
        user_id=body.userId,
        guests=body.numberOfGuests,
        guest=body.guestDetails.model_dump() if body.guestDetails else None,
    )
    if not created:
        out = VerifyPaymentOut(success=True, message="Payment already verified.", booking=booking_out(booking))
        return JSONResponse(status_code=200, content=out.model_dump(mode="json"))

    notification_service.notify_booking_received(db, booking)
    return VerifyPaymentOut(
        success=True,
        message="Booking created successfully. Payment verified.",
        booking=booking_out(booking),
    )


@router.get("/my-bookings", response_model=BookingListOut)
def my_bookings(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    items = booking_service.list_user_bookings(db, me.id)
    return BookingListOut(count=len(items), bookings=[booking_out(b) for b in items])


@router.get("/all", response_model=BookingListOut)
@router.get("/all/bookings", response_model=BookingListOut, include_in_schema=False)
def all_bookings(status: BookingStatus | None = None,
                 page: int = Query(1, ge=1), limit: int = Query(50, ge=1, le=100),
                 db: Session = Depends(get_db),
                 me: User = Depends(require_admin)):
    total, items = booking_service.list_all_bookings(db, status=status, limit=limit, offset=(page - 1) * limit)
    return BookingListOut(count=len(items), bookings=[booking_out(b) for b in items],
                          pagination=paginate(page, limit, total))


@router.get("/{booking_id}")
def get_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = booking_service.get_booking(db, booking_id)
    if b.user_id != me.id and not me.is_admin:
        raise HTTPException(status_code=403, detail="Not authorized to view this booking")
    return {"success": True, "booking": booking_out(b)}


@router.put("/{booking_id}/status", response_model=BookingStatusOut)
def update_status(booking_id: str, body: BookingStatusUpdate,
                  db: Session = Depends(get_db),
                  me: User = Depends(require_admin)):
    return _change_status(db, booking_id, body.status, me, body.reason)


@router.put("/{booking_id}/confirm", response_model=BookingStatusOut)
def confirm_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    return _change_status(db, booking_id, BookingStatus.APPROVED, me)


@router.put("/{booking_id}/cancel", response_model=BookingStatusOut)
def cancel_booking(booking_id: str, body: BookingCancelRequest | None = None,
                   db: Session = Depends(get_db),
                   me: User = Depends(require_admin)):
    return _change_status(db, booking_id, BookingStatus.CANCELLED, me, body.rejectionReason if body else None)


@router.get("/{booking_id}/history", response_model=BookingHistoryOut)
def booking_history(booking_id: str, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    booking_service.get_booking(db, booking_id)
    entries = entity_history(db, "booking", booking_id)
    return BookingHistoryOut(bookingId=booking_id, history=[
        AuditEntryOut(action=e.action, actorUserId=e.actor_user_id, details=e.details or {}, createdAt=e.created_at)
        for e in entries
    ])


def _change_status(db: Session, booking_id: str, target: BookingStatus, actor: User,
                   reason: str | None = None) -> BookingStatusOut:
    b = booking_service.transition_status(db, booking_id, target, actor=actor, reason=reason)
    notification_service.notify_status_changed(db, b, reason)
    return BookingStatusOut(message=f"Booking {b.status.lower()} successfully", booking=booking_out(b))
