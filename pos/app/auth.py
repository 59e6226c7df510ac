# auth.py

"""Shared-password admin login issuing short-lived JWT bearer tokens."""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, VerifyMismatchError
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from config import Settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ADMIN_SUBJECT = "admin"

ph = PasswordHasher()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/admin/login")


@lru_cache(maxsize=8)
def hash_password(password: str) -> str:
    """Return an argon2 hash of ``password``; cached per distinct value."""

    return ph.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored hash."""

    try:
        return ph.verify(hashed_password, plain_password)
    except VerifyMismatchError:
        return False
    except VerificationError as exc:  # pragma: no cover - unexpected
        logger.error("argon2 verification error: %s", exc)
        raise


def authenticate_admin(settings: Settings, password: str) -> bool:
    """Return ``True`` when ``password`` matches the configured admin password."""

    return verify_password(password, hash_password(settings.admin_password))


def create_access_token(
    data: dict, secret_key: str, expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed JWT containing the provided claims."""

    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)


def issue_admin_token(settings: Settings) -> str:
    return create_access_token(
        {"sub": ADMIN_SUBJECT, "role": "admin"},
        settings.secret_key,
        timedelta(minutes=settings.admin_token_expire_minutes),
    )


def admin_required(request: Request, token: str = Depends(oauth2_scheme)) -> str:
    """Dependency rejecting requests without a valid admin bearer token."""

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    settings: Settings = request.app.state.settings
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        raise credentials_exception
    if payload.get("sub") != ADMIN_SUBJECT or payload.get("role") != "admin":
        raise credentials_exception
    return payload["sub"]
