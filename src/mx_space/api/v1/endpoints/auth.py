# src/mx_space/api/v1/endpoints/auth.py
"""Authentication endpoints for the site owner."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from mx_space.api.v1.dependencies import IsMasterDep
from mx_space.core.security import create_access_token, verify_password
from mx_space.core.settings import settings
from mx_space.schemas.auth import AuthCheck, LoginRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest) -> TokenResponse:
    """Exchange the master's username and password for a JWT.

    Raises:
        HTTPException: 401 on unknown user or wrong password
    """
    if payload.username != settings.master_username or not verify_password(
        payload.password, settings.master_password_hash
    ):
        logger.warning("Failed login attempt for %r", payload.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(access_token=create_access_token())


@router.get("/check", response_model=AuthCheck)
async def check_login(is_master: IsMasterDep) -> AuthCheck:
    """Report whether the request is authenticated as the master."""
    return AuthCheck(ok=is_master)
