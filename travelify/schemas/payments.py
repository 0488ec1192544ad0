from pydantic import BaseModel, Field
from typing import Dict, Optional


class CreateOrderRequest(BaseModel):
    # Major currency units (rupees); converted to paise before reaching Razorpay.
    amount: int = Field(gt=0)
    notes: Optional[Dict[str, str]] = None


class GuestDetails(BaseModel):
    name: str = Field(min_length=1)
    email: str
    phone: str = ""


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    tourId: str
    userId: Optional[str] = None  # defaults to the authenticated user
    numberOfGuests: int = Field(default=1, ge=1)
    guestDetails: Optional[GuestDetails] = None
