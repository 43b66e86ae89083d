"""
Credentials for back-office users: bcrypt password hashes and signed
session tokens.

Two token kinds are issued, ``access`` and ``refresh``, told apart by the
``type`` claim; a token is only accepted where its own kind is expected.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from homelesson.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS = "access"
REFRESH = "refresh"


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


def access_token_ttl() -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def _sign(user_id: int, kind: str, lifetime: timedelta, **claims: Any) -> str:
    claims.update(
        sub=str(user_id),
        type=kind,
        exp=datetime.now(timezone.utc) + lifetime,
    )
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(
    user_id: int, role: str | None = None, lifetime: timedelta | None = None
) -> str:
    extra = {"role": role} if role else {}
    return _sign(user_id, ACCESS, lifetime or access_token_ttl(), **extra)


def create_refresh_token(user_id: int) -> str:
    return _sign(user_id, REFRESH, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def _claims(token: str, kind: str) -> dict[str, Any] | None:
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    return claims if claims.get("type") == kind else None


def decode_access_token(token: str) -> dict[str, Any] | None:
    return _claims(token, ACCESS)


def decode_refresh_token(token: str) -> dict[str, Any] | None:
    return _claims(token, REFRESH)


def token_user_id(claims: dict[str, Any] | None) -> int | None:
    """The numeric user id in ``sub``, or ``None`` for anything else."""
    if not claims:
        return None
    sub = str(claims.get("sub", ""))
    return int(sub) if sub.isascii() and sub.isdigit() else None
