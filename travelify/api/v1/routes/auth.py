import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import structlog
from travelify.db.session import get_db
from travelify.core.config import settings
from travelify.schemas.auth import AuthOut, LoginRequest, ProfileUpdate, RegisterRequest
from travelify.models.user import User
from travelify.core.security import hash_password, verify_password, create_access_token
from travelify.api.deps import get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])
logger = structlog.get_logger(__name__)


def _auth_out(user: User, with_token: bool = True) -> AuthOut:
    return AuthOut(
        id=user.id,
        name=user.name,
        email=user.email,
        isAdmin=user.is_admin,
        token=create_access_token(user.id) if with_token else None,
    )


@router.post("/register", response_model=AuthOut, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail="email required")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="User already exists")
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        name=body.name.strip(),
        password_hash=hash_password(body.password),
        is_admin=bool(settings.ADMIN_EMAIL) and email == settings.ADMIN_EMAIL.strip().lower(),
        is_active=True,
    )
    db.add(user)
    db.commit()
    logger.info("user_registered", user_id=user.id, is_admin=user.is_admin)
    return _auth_out(user)


@router.post("/login", response_model=AuthOut)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _auth_out(user)


@router.get("/profile", response_model=AuthOut)
def get_profile(me: User = Depends(get_current_user)):
    return _auth_out(me, with_token=False)


@router.put("/profile", response_model=AuthOut)
def update_profile(body: ProfileUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    if body.email is not None:
        email = body.email.strip().lower()
        taken = db.query(User).filter(User.email == email, User.id != me.id).first()
        if taken:
            raise HTTPException(status_code=400, detail="Email already in use")
        me.email = email
    if body.name is not None:
        me.name = body.name.strip()
    if body.password is not None:
        me.password_hash = hash_password(body.password)
    db.commit()
    return _auth_out(me)
