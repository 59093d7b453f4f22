"""
Authentication API routes
Handles user registration, login and identity lookup
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select

from papertrade.core.database import get_session
from papertrade.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    rate_limit_signup,
    rate_limit_auth
)
from papertrade.core.dependencies import get_current_user
from papertrade.models.user import (
    User,
    UserRegister,
    UserLogin,
    UserResponse,
    TokenResponse,
)
from papertrade.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@rate_limit_signup
async def register(
    request: Request,
    user_data: UserRegister,
    session: AsyncSession = Depends(get_session)
):
    """
    Register a new user account

    The portfolio is not created here; the client creates it explicitly
    before the first trade.
    """
    email = user_data.email.strip().lower()

    result = await session.execute(
        select(User).where(User.email == email)
    )
    existing_user = result.scalar_one_or_none()

    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=email,
        password_hash=hash_password(user_data.password)
    )

    session.add(new_user)
    await session.commit()
    await session.refresh(new_user)

    logger.info("Registered user_id=%s", new_user.id)
    return new_user


@router.post("/login", response_model=TokenResponse)
@rate_limit_auth
async def login(
    request: Request,
    credentials: UserLogin,
    session: AsyncSession = Depends(get_session)
):
    """Login with email and password, returns a bearer access token"""
    result = await session.execute(
        select(User).where(User.email == credentials.email.strip().lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    access_token = create_access_token(data={"sub": str(user.id)})

    return TokenResponse(
        access_token=access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current authenticated user information"""
    return current_user
