from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from travelify.models.enums import BookingStatus
from travelify.schemas.common import Pagination


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    reason: Optional[str] = Field(default=None, max_length=500)

    @field_validator("status")
    @classmethod
    def target_must_be_terminal(cls, v: BookingStatus) -> BookingStatus:
        if v is BookingStatus.PENDING:
            raise ValueError("status must be Approved or Cancelled")
        return v


class BookingUserOut(BaseModel):
    id: str
    name: str
    email: str


class BookingTourOut(BaseModel):
    id: str
    title: str
    location: str
    price: int
    image: str = ""


class GuestOut(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""


class BookingOut(BaseModel):
    id: str
    user: Optional[BookingUserOut] = None
    tour: Optional[BookingTourOut] = None
    numberOfGuests: int
    amount: int
    status: str
    paymentStatus: str
    razorpayOrderId: str
    razorpayPaymentId: str
    guestDetails: GuestOut
    rejectionReason: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class VerifyPaymentOut(BaseModel):
    success: bool
    message: str
    booking: BookingOut


class BookingStatusOut(BaseModel):
    message: str
    booking: BookingOut


class BookingListOut(BaseModel):
    success: bool = True
    count: int
    bookings: List[BookingOut]
    pagination: Optional[Pagination] = None


class BookingCancelRequest(BaseModel):
    rejectionReason: Optional[str] = Field(default=None, max_length=500)


class AuditEntryOut(BaseModel):
    action: str
    actorUserId: str
    details: dict
    createdAt: Optional[datetime] = None


class BookingHistoryOut(BaseModel):
    success: bool = True
    bookingId: str
    history: List[AuditEntryOut]
