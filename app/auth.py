import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .models import ROLE_ADMIN, ROLE_PROVIDER, User

logger = logging.getLogger(__name__)

security = HTTPBearer()


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token for a user

    Args:
        user_id: User the token identifies (stored in ``sub``)
        expires_delta: Token lifetime (default 1 day)
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(days=1))
    return jose_jwt.encode({"sub": str(user_id), "exp": expire}, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Decode a token; returns None when invalid or expired"""
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def resolve_user(token: str, db: Session) -> Optional[User]:
    """Return the user a token identifies, or None"""
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None
    return db.query(User).filter(User.id == user_id).first()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    user = resolve_user(credentials.credentials, db)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_current_provider(user: User = Depends(get_current_user)) -> User:
    if user.role != ROLE_PROVIDER:
        raise HTTPException(status_code=403, detail="Provider access required")
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
