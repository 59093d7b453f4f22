"""
Trading models: Trade plus order request/response schemas
Maps to: trades table
"""

from sqlmodel import SQLModel, Field
from typing import Any, Optional
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID
from enum import Enum


# ============================================================================
# ENUMS
# ============================================================================

class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(str, Enum):
    EXECUTED = "EXECUTED"


# ============================================================================
# TRADE MODEL (executed trades, append-only)
# ============================================================================

class Trade(SQLModel, table=True):
    """Executed trade record. Written once, never updated."""
    __tablename__ = "trades"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)

    symbol: str = Field(max_length=20)
    side: str = Field(max_length=10)
    quantity: int
    price: Decimal = Field(max_digits=20, decimal_places=8)
    algorithm: str = Field(default="heap", max_length=50)  # display label only
    profit: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=8)
    status: str = Field(default=TradeStatus.EXECUTED.value, max_length=20)

    executed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# REQUEST/RESPONSE MODELS (Pydantic, not DB tables)
# ============================================================================

class OrderCreate(SQLModel):
    """Order placement request. Quantity is left raw so the order validator can reject it with a readable reason."""
    symbol: str = Field(max_length=20)
    side: str = Field(max_length=10)  # "BUY" or "SELL"
    quantity: Any
    algorithm: str = Field(default="heap", max_length=50)


class OrderResponse(SQLModel):
    """Order placement response"""
    success: bool
    message: str
    trade_id: Optional[int] = None
    price: Optional[float] = None
    cash: Optional[float] = None
    total_value: Optional[float] = None


class TradeHistoryItem(SQLModel):
    """Single trade in history response"""
    id: int
    symbol: str
    side: str
    quantity: int
    price: float
    algorithm: str
    profit: float
    status: str
    executed_at: datetime


class TradeStatsResponse(SQLModel):
    total_trades: int
    total_profit: float
    win_rate: float
    recent_trades: list[TradeHistoryItem]
