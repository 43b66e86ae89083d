"""Login and refresh payloads."""

from __future__ import annotations

from pydantic import BaseModel


class TokenPair(BaseModel):
    """Issued on login and refresh; the role tells the client which screens to offer."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    role: str


class RefreshRequest(BaseModel):
    refresh_token: str
