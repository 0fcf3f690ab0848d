"""Authentication schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """JWT issued to the site owner."""

    access_token: str
    token_type: str = "bearer"


class AuthCheck(BaseModel):
    ok: bool
