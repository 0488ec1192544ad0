from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
from travelify.db.session import Base
from travelify.models.enums import BookingStatus, PaymentStatus
from travelify.models.tour import Tour
from travelify.models.user import User

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("status IN ('Pending','Approved','Cancelled')", name="ck_bookings_status"),
        CheckConstraint("payment_status IN ('Pending','Paid','Refunded')", name="ck_bookings_payment_status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    tour_id: Mapped[str] = mapped_column(ForeignKey("tours.id"), index=True)

    number_of_guests: Mapped[int] = mapped_column(Integer, default=1)
    amount: Mapped[int] = mapped_column(Integer)  # rupees

    status: Mapped[str] = mapped_column(String(20), default=BookingStatus.PENDING.value, index=True)
    payment_status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value)

    razorpay_order_id: Mapped[str] = mapped_column(String(64), index=True)
    # One booking per captured payment; duplicate callbacks collide here.
    razorpay_payment_id: Mapped[str] = mapped_column(String(64), unique=True)
    razorpay_signature: Mapped[str] = mapped_column(String(128))

    guest_name: Mapped[str] = mapped_column(String(200), default="")
    guest_email: Mapped[str] = mapped_column(String(320), default="")
    guest_phone: Mapped[str] = mapped_column(String(40), default="")

    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user: Mapped[User] = relationship(lazy="joined")
    tour: Mapped[Tour] = relationship(lazy="joined")
