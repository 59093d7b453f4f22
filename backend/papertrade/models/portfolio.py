"""
Portfolio models: Portfolio, PortfolioHolding, plus the in-memory
Holding / PortfolioSnapshot shapes the trading engine works on.
"""

from sqlmodel import SQLModel, Field
from typing import List
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# PORTFOLIO MODEL
# ============================================================================

class Portfolio(SQLModel, table=True):
    """
    User portfolio summary.
    PK is user_id (one portfolio per user, created explicitly).
    total_value is whatever the valuator derived at the last execution.
    """
    __tablename__ = "portfolios"

    user_id: UUID = Field(foreign_key="users.id", primary_key=True)
    cash: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=8)
    total_value: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=8)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ============================================================================
# PORTFOLIO HOLDING MODEL
# ============================================================================

class PortfolioHolding(SQLModel, table=True):
    """
    One symbol position within a portfolio.
    position keeps the holdings in the order they were first bought.
    """
    __tablename__ = "portfolio_holdings"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="portfolios.user_id", index=True)
    symbol: str = Field(max_length=20)
    position: int = Field(default=0)

    quantity: int = Field(gt=0)
    avg_price: Decimal = Field(max_digits=20, decimal_places=8)

    updated_at: datetime = Field(default_factory=_utcnow)


# ============================================================================
# ENGINE SHAPES (not DB tables)
# ============================================================================

class Holding(SQLModel):
    """Position in one symbol: quantity and volume-weighted average cost"""
    symbol: str
    quantity: int
    avg_price: Decimal


class PortfolioSnapshot(SQLModel):
    """
    Point-in-time portfolio state.
    persisted=False marks a default preview for a user who has not
    created a portfolio yet; it must not be traded against.
    """
    user_id: UUID
    cash: Decimal
    total_value: Decimal
    holdings: List[Holding] = []
    persisted: bool = False

    def find_holding(self, symbol: str) -> Holding | None:
        for holding in self.holdings:
            if holding.symbol == symbol:
                return holding
        return None
