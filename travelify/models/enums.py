from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    CANCELLED = "Cancelled"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    REFUNDED = "Refunded"


class TourCategory(str, Enum):
    DOMESTIC = "Domestic"
    INTERNATIONAL = "International"
