from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models import User
from schemas import Identity
from common.enum import RoleEnum


# 🔐 Argon2 password hashing
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

# Missing credentials are the gate's call (401), not the scheme's
security = HTTPBearer(auto_error=False)


# ---------------- PASSWORD UTILS ---------------- #

def hash_password(password: str) -> str:
    """Hash password using Argon2"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password using Argon2"""
    return pwd_context.verify(plain_password, hashed_password)


# ---------------- TOKEN UTILS ---------------- #

def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token"""

    to_encode = data.copy()

    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])

    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    to_encode.update({
        "exp": expire,
        "type": "access"
    })

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_access_token(token: str) -> Optional[dict]:
    """Decode an access token; None if it is invalid, expired or of another type"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload


def identity_from_user(user: User) -> Identity:
    return Identity(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role or RoleEnum.USER,
    )


# ---------------- SESSION RESOLVER ---------------- #

async def resolve_session(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: Session = Depends(get_db)
) -> Optional[Identity]:
    """Identity behind the bearer token, or None when there is no valid session"""
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        return None

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if user is None:
        return None

    return identity_from_user(user)
