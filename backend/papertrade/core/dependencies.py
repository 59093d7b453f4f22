"""
Request dependencies: authenticated identity and the live price source.
"""

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from papertrade.core.database import get_session
from papertrade.core.price_feed import PriceGenerator, get_price_generator
from papertrade.core.security import decode_token
from papertrade.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the bearer token to a user; anything else is 401 unauthorized."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    try:
        payload = decode_token(credentials.credentials)
    except HTTPException:
        raise unauthorized
    if payload.get("type") != "access" or not payload.get("sub"):
        raise unauthorized

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise unauthorized

    user = await session.get(User, user_id)
    if not user:
        raise unauthorized
    return user


def get_price_source() -> PriceGenerator:
    generator = get_price_generator()
    if generator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Price feed unavailable"
        )
    return generator
