from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from travelify.db.session import get_db
from travelify.api.deps import get_current_user
from travelify.models.review import Review
from travelify.models.tour import Tour
from travelify.models.user import User
from travelify.schemas.common import paginate
from travelify.schemas.review import ReviewCreate, ReviewListOut, ReviewOut, ReviewUpdate
from travelify.services import review_service
from travelify.services.errors import TourNotFound

router = APIRouter(prefix="/reviews", tags=["reviews"])


def review_out(r: Review) -> ReviewOut:
    return ReviewOut(
        id=r.id,
        tourId=r.tour_id,
        tourTitle=r.tour.title if r.tour else "",
        userId=r.user_id,
        userName=r.user.name if r.user else "",
        rating=r.rating,
        comment=r.comment,
        isVerified=r.is_verified,
        createdAt=r.created_at,
    )


@router.post("", status_code=201)
def create_review(body: ReviewCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    r = review_service.create_review(db, me, body.tourId, body.rating, body.comment)
    return {"success": True, "message": "Review created successfully", "data": review_out(r)}


@router.get("/tour/{tour_id}", response_model=ReviewListOut)
def tour_reviews(tour_id: str, page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100),
                 db: Session = Depends(get_db)):
    total, items = review_service.list_reviews(db, tour_id=tour_id, limit=limit, offset=(page - 1) * limit)
    return ReviewListOut(reviews=[review_out(r) for r in items], pagination=paginate(page, limit, total))


@router.get("/my-reviews", response_model=ReviewListOut)
def my_reviews(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100),
               db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    total, items = review_service.list_reviews(db, user_id=me.id, limit=limit, offset=(page - 1) * limit)
    return ReviewListOut(reviews=[review_out(r) for r in items], pagination=paginate(page, limit, total))


@router.get("/can-review/{tour_id}")
def can_review(tour_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    if not db.get(Tour, tour_id):
        raise TourNotFound("Tour not found")
    already = db.query(Review.id).filter(Review.tour_id == tour_id, Review.user_id == me.id).first()
    if already:
        return {"success": True, "canReview": False, "message": "You have already reviewed this tour"}
    has_booked = review_service.has_approved_booking(db, me.id, tour_id)
    return {
        "success": True,
        "canReview": True,
        "hasBooked": has_booked,
        "message": "You can write a verified review" if has_booked else "You can write a review (unverified)",
    }


@router.put("/{review_id}")
def update_review(review_id: str, body: ReviewUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    r = review_service.update_review(db, review_id, me, rating=body.rating, comment=body.comment)
    return {"success": True, "message": "Review updated successfully", "data": review_out(r)}


@router.delete("/{review_id}")
def delete_review(review_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    review_service.delete_review(db, review_id, me)
    return {"success": True, "message": "Review deleted successfully"}
