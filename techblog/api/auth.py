from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from techblog.core.deps import get_current_user
from techblog.core.security import create_access_token, hash_password, verify_password
from techblog.db.sa import get_session
from techblog.models.auth_models import User
from techblog.schemas.auth import AccessToken, LoginRequest, RegisterRequest, UserProfile


router = APIRouter(tags=["auth"])
logger = logging.getLogger("techblog.auth")


@router.post("/register", response_model=AccessToken, status_code=201)
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_session)) -> AccessToken:
    res = await session.execute(select(User).where(User.email == payload.email))
    if res.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(name=payload.name, email=payload.email, password_hash=hash_password(payload.password))
    session.add(user)
    await session.flush()  # to get user.id
    await session.commit()
    logger.info(
        "User registered",
        extra={"event": "user_registered", "user_id": str(user.id), "email": user.email},
    )
    return AccessToken(access_token=create_access_token(user.id))


@router.post("/login", response_model=AccessToken)
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)) -> AccessToken:
    res = await session.execute(select(User).where(User.email == payload.email))
    user = res.scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning(
            "Login failed",
            extra={"event": "login_failed", "email": payload.email, "user_exists": user is not None},
        )
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        logger.warning(
            "Login blocked for inactive user",
            extra={"event": "login_inactive", "email": payload.email, "user_id": str(user.id)},
        )
        raise HTTPException(status_code=403, detail="User is inactive")

    logger.info(
        "User login",
        extra={"event": "user_login", "user_id": str(user.id), "email": user.email},
    )
    return AccessToken(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserProfile)
async def me(current_user: User = Depends(get_current_user)) -> UserProfile:
    return UserProfile(
        id=current_user.id,
        name=current_user.name,
        email=current_user.email,
        is_active=current_user.is_active,
    )
