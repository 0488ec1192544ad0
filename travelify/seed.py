import os
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError
import structlog

from travelify.db.session import SessionLocal
from travelify.core.config import settings
from travelify.core.security import hash_password
from travelify.models.user import User
from travelify.models.tour import Tour

logger = structlog.get_logger(__name__)

TOURS = [
    # title, location, category, subcategory, price, slots
    ("Goa Beach Escape", "Goa, India", "Domestic", "Goa", 5000, 20),
    ("Kerala Backwaters Cruise", "Alleppey, India", "Domestic", "Kerala", 7500, 12),
    ("Himalayan Trek", "Manali, India", "Domestic", "Himachal", 9800, 15),
    ("Dubai City Lights", "Dubai, UAE", "International", "Dubai", 45000, 10),
    ("Thailand Island Hopping", "Phuket, Thailand", "International", "Thailand", 38000, 8),
]


def ensure_admin(db: Session, email: str, password: str, name: str = "Admin"):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            password_hash=hash_password(password),
            is_admin=True,
            is_active=True,
        )
    )
    db.commit()
    logger.info("seed_admin_created", email=email)


def ensure_tours(db: Session):
    if db.query(Tour.id).first():
        return
    for title, location, category, subcategory, price, slots in TOURS:
        db.add(Tour(
            id=str(uuid.uuid4()),
            title=title,
            description=f"{title} with Travelify.",
            location=location,
            category=category,
            subcategory=subcategory,
            price=price,
            available_slots=slots,
        ))
    db.commit()
    logger.info("seed_tours_created", count=len(TOURS))


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except ProgrammingError:
            db.rollback()
            logger.warning("seed_skipped", reason="users table not found (run alembic upgrade head)")
            return

        admin_password = os.getenv("ADMIN_PASSWORD")
        if settings.ADMIN_EMAIL and admin_password:
            ensure_admin(db, settings.ADMIN_EMAIL.strip().lower(), admin_password)
        ensure_tours(db)
    finally:
        db.close()


if __name__ == "__main__":
    run()
