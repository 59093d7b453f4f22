"""
User models: User plus auth request/response schemas
"""

from sqlmodel import SQLModel, Field
from datetime import datetime, timezone
from uuid import UUID, uuid4


# ============================================================================
# USER MODEL
# ============================================================================

class User(SQLModel, table=True):
    """Account that owns one portfolio and a trade history"""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# REQUEST/RESPONSE MODELS (Pydantic)
# ============================================================================

class UserRegister(SQLModel):
    """User registration request"""
    email: str = Field(max_length=255)
    password: str = Field(min_length=8, max_length=100)


class UserLogin(SQLModel):
    """User login request"""
    email: str = Field(max_length=255)
    password: str = Field(max_length=128)


class UserResponse(SQLModel):
    """User response (without sensitive data)"""
    id: UUID
    email: str
    created_at: datetime


class TokenResponse(SQLModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
