import uuid
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import func

from travelify.db.session import get_db
from travelify.api.deps import require_admin
from travelify.models.booking import Booking
from travelify.models.enums import TourCategory
from travelify.models.review import Review
from travelify.models.tour import Tour
from travelify.models.user import User
from travelify.schemas.common import paginate
from travelify.schemas.tour import TourCreate, TourListOut, TourOut, TourUpdate
from travelify.services.audit_service import log_audit

router = APIRouter(prefix="/tours", tags=["tours"])

# request field -> model attribute
_FIELDS = {
    "title": "title",
    "description": "description",
    "location": "location",
    "category": "category",
    "subcategory": "subcategory",
    "price": "price",
    "availableSlots": "available_slots",
    "image": "image",
}


def tour_out(t: Tour) -> TourOut:
    return TourOut(
        id=t.id,
        title=t.title,
        description=t.description or "",
        location=t.location,
        category=t.category,
        subcategory=t.subcategory,
        price=t.price,
        availableSlots=t.available_slots,
        image=t.image or "",
        averageRating=t.average_rating or 0.0,
        totalReviews=t.total_reviews or 0,
        createdAt=t.created_at,
    )


@router.get("", response_model=TourListOut)
def list_tours(page: int = Query(1, ge=1), limit: int = Query(12, ge=1, le=100),
               category: TourCategory | None = None, q: str | None = None,
               db: Session = Depends(get_db)):
    query = db.query(Tour)
    if category:
        query = query.filter(Tour.category == category.value)
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(func.lower(Tour.title).like(ql) | func.lower(Tour.location).like(ql))
    total = query.count()
    items = query.order_by(Tour.created_at.desc()).limit(limit).offset((page - 1) * limit).all()
    return TourListOut(items=[tour_out(t) for t in items], pagination=paginate(page, limit, total))


@router.get("/{tour_id}", response_model=TourOut)
def get_tour(tour_id: str, db: Session = Depends(get_db)):
    t = db.get(Tour, tour_id)
    if not t:
        raise HTTPException(status_code=404, detail="Tour not found")
    return tour_out(t)


@router.post("", response_model=TourOut, status_code=201)
def create_tour(body: TourCreate, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    t = Tour(
        id=str(uuid.uuid4()),
        title=body.title,
        description=body.description,
        location=body.location,
        category=body.category.value,
        subcategory=body.subcategory,
        price=body.price,
        available_slots=body.availableSlots,
        image=body.image,
    )
    db.add(t)
    log_audit(db, me.id, "tour.create", "tour", t.id, {"title": t.title, "price": t.price})
    db.commit()
    db.refresh(t)
    return tour_out(t)


@router.put("/{tour_id}", response_model=TourOut)
def update_tour(tour_id: str, body: TourUpdate, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    t = db.get(Tour, tour_id)
    if not t:
        raise HTTPException(status_code=404, detail="Tour not found")
    changes = body.model_dump(exclude_unset=True, mode="json")
    for key, value in changes.items():
        if value is None and key != "subcategory":
            continue
        setattr(t, _FIELDS[key], value)
    log_audit(db, me.id, "tour.update", "tour", t.id, changes)
    db.commit()
    db.refresh(t)
    return tour_out(t)


@router.delete("/{tour_id}")
def delete_tour(tour_id: str, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    t = db.get(Tour, tour_id)
    if not t:
        raise HTTPException(status_code=404, detail="Tour not found")
    if db.query(Booking.id).filter(Booking.tour_id == tour_id).first():
        raise HTTPException(status_code=409, detail="Tour has bookings and cannot be deleted")
    db.query(Review).filter(Review.tour_id == tour_id).delete(synchronize_session=False)
    db.delete(t)
    log_audit(db, me.id, "tour.delete", "tour", tour_id, {"title": t.title})
    db.commit()
    return {"success": True, "message": "Tour deleted successfully"}
