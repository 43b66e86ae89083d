"""
Request dependencies: the database session, who is calling and what they
may do, and the default reporting week.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.core.config import settings
from homelesson.core.security import decode_access_token, token_user_id
from homelesson.models.user import User

# auto_error=False so the cookie can be checked when the header is missing
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False
)


# ── Database session ────────────────────────────────────────────────
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async for session in request.app.state.database.session():
        yield session


# ── Auth dependencies ───────────────────────────────────────────────
def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _cookie_token(cookie: str | None) -> str | None:
    # Login stores the cookie as "Bearer <token>"
    if cookie and cookie.startswith("Bearer "):
        return cookie.split(" ", 1)[1]
    return cookie or None


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """The user behind the Authorization header, or else the access_token cookie."""
    raw = token or _cookie_token(access_token)
    user_id = token_user_id(decode_access_token(raw)) if raw else None
    if user_id is None:
        raise _unauthenticated()

    user = await db.get(User, user_id)
    if user is None:
        raise _unauthenticated()
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


async def require_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Teachers, subjects, timetable, payroll, settings and users are admin-only to change."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


# ── Period defaults ─────────────────────────────────────────────────
def current_iso_week() -> tuple[int, int]:
    """(week, year) of today by ISO calendar."""
    iso = date.today().isocalendar()
    return iso[1], iso[0]
