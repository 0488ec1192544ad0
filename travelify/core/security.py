from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from travelify.core.config import settings

# pbkdf2_sha256 has no 72-byte password limit
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGORITHM = "HS256"
TOKEN_TYPE = "access"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, expires_minutes: int | None = None) -> str:
    """Signed bearer token for `user_id`, valid for ACCESS_TOKEN_EXPIRE_MINUTES by default."""
    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes)
    claims = {"sub": user_id, "type": TOKEN_TYPE, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGORITHM)


def token_subject(token: str) -> str:
    """User id carried by a valid access token. Raises JWTError otherwise."""
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    if claims.get("type") != TOKEN_TYPE or not claims.get("sub"):
        raise JWTError("not an access token")
    return claims["sub"]
