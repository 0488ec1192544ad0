import math
import uuid
from sqlalchemy import select, func
from sqlalchemy.orm import Session
import structlog

from travelify.models.booking import Booking
from travelify.models.enums import BookingStatus
from travelify.models.review import Review
from travelify.models.tour import Tour
from travelify.models.user import User
from travelify.services.errors import DuplicateReview, Forbidden, ReviewNotFound, TourNotFound

logger = structlog.get_logger(__name__)


def rating_aggregate(ratings: list[int]) -> tuple[float, int]:
    """(average rounded half-up to one decimal, count); (0.0, 0) when there are no ratings."""
    if not ratings:
        return 0.0, 0
    return math.floor(sum(ratings) / len(ratings) * 10 + 0.5) / 10, len(ratings)


def update_tour_rating(db: Session, tour_id: str) -> None:
    tour = db.get(Tour, tour_id)
    if not tour:
        return
    ratings = list(db.execute(select(Review.rating).where(Review.tour_id == tour_id)).scalars())
    tour.average_rating, tour.total_reviews = rating_aggregate(ratings)


def has_approved_booking(db: Session, user_id: str, tour_id: str) -> bool:
    return db.execute(
        select(Booking.id).where(
            Booking.user_id == user_id,
            Booking.tour_id == tour_id,
            Booking.status == BookingStatus.APPROVED.value,
        ).limit(1)
    ).first() is not None


def create_review(db: Session, user: User, tour_id: str, rating: int, comment: str) -> Review:
    if not db.get(Tour, tour_id):
        raise TourNotFound("Tour not found")
    exists = db.execute(
        select(Review.id).where(Review.tour_id == tour_id, Review.user_id == user.id)
    ).first()
    if exists:
        raise DuplicateReview("You have already reviewed this tour")

    review = Review(
        id=str(uuid.uuid4()),
        tour_id=tour_id,
        user_id=user.id,
        rating=int(rating),
        comment=comment.strip(),
        is_verified=has_approved_booking(db, user.id, tour_id),
    )
    db.add(review)
    db.flush()
    update_tour_rating(db, tour_id)
    db.commit()
    db.refresh(review)
    logger.info("review_created", review_id=review.id, tour_id=tour_id, rating=review.rating)
    return review


def _owned_review(db: Session, review_id: str, user: User) -> Review:
    review = db.get(Review, review_id)
    if not review:
        raise ReviewNotFound("Review not found")
    if review.user_id != user.id and not user.is_admin:
        raise Forbidden("You can only change your own reviews")
    return review


def update_review(db: Session, review_id: str, user: User, rating: int | None = None, comment: str | None = None) -> Review:
    review = _owned_review(db, review_id, user)
    if rating is not None:
        review.rating = int(rating)
    if comment is not None:
        review.comment = comment.strip()
    db.flush()
    update_tour_rating(db, review.tour_id)
    db.commit()
    db.refresh(review)
    return review


def delete_review(db: Session, review_id: str, user: User) -> None:
    review = _owned_review(db, review_id, user)
    tour_id = review.tour_id
    db.delete(review)
    db.flush()
    update_tour_rating(db, tour_id)
    db.commit()


def list_reviews(db: Session, *, tour_id: str | None = None, user_id: str | None = None,
                 limit: int = 10, offset: int = 0) -> tuple[int, list[Review]]:
    query = select(Review)
    count_query = select(func.count(Review.id))
    if tour_id:
        query = query.where(Review.tour_id == tour_id)
        count_query = count_query.where(Review.tour_id == tour_id)
    if user_id:
        query = query.where(Review.user_id == user_id)
        count_query = count_query.where(Review.user_id == user_id)
    total = db.execute(count_query).scalar_one()
    items = db.execute(query.order_by(Review.created_at.desc()).limit(limit).offset(offset)).scalars()
    return int(total), list(items)
