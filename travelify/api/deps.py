from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from travelify.core.config import settings
from travelify.db.session import get_db
from travelify.core.security import token_subject
from travelify.models.user import User
from travelify.services.razorpay_client import RazorpayClient, RazorpayConfig

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    try:
        user_id = token_subject(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access denied")
    return user

def get_razorpay_client() -> RazorpayClient:
    if not (settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET):
        raise HTTPException(
            status_code=500,
            detail="Payment gateway not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET.",
        )
    return RazorpayClient(RazorpayConfig(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        currency=settings.RAZORPAY_CURRENCY,
        api_base=settings.RAZORPAY_API_BASE,
        timeout=settings.RAZORPAY_TIMEOUT,
    ))
